#!/usr/bin/env python3
"""Connectivity smoke test against the configured Tencent Meeting API.

Usage:
    uv run python scripts/check_connection.py
    uv run python scripts/check_connection.py --api-url https://api.meeting.qq.com --token $TOKEN

Reads TENCENT_MEETING_* settings from environment or .env file.
Exit code 0 if all checks pass, 1 if any fail.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure project root is on sys.path so we can import src.tencent_meeting
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

from src.tencent_meeting.clients import ClientFactory, ClientKind  # noqa: E402
from src.tencent_meeting.config import Settings  # noqa: E402
from src.tencent_meeting.core.logging import configure_structlog  # noqa: E402
from src.tencent_meeting.exceptions import TencentMeetingError  # noqa: E402
from src.tencent_meeting.http import HttpTransport  # noqa: E402


async def run_checks(settings: Settings) -> list[tuple[str, bool, str]]:
    """Run the health, client construction and listing checks."""
    results: list[tuple[str, bool, str]] = []

    async with HttpTransport(settings) as transport:
        available = await transport.check_availability()
        results.append(("API health", available, settings.API_URL))

        factory = ClientFactory(settings, transport)
        created = factory.batch_create(list(ClientKind))
        failed = [label for label, value in created.items() if isinstance(value, dict)]
        results.append((
            "Client construction",
            not failed,
            f"failed: {', '.join(failed)}" if failed else f"{len(created)} clients",
        ))

        try:
            meetings = await factory.create_meeting_client().list_meetings({"page": 1, "page_size": 1})
            results.append(("List meetings", True, f"{len(meetings.get('meetings') or [])} returned"))
        except TencentMeetingError as exc:
            results.append(("List meetings", False, str(exc)))

    return results


def print_results(results: list[tuple[str, bool, str]]) -> None:
    """Print a formatted table of check results."""
    separator = "-" * 70
    print()
    print(separator)
    print(f"{'CHECK':<25} {'STATUS':<10} {'DETAIL'}")
    print(separator)
    for name, passed, detail in results:
        print(f"{name:<25} {'PASS' if passed else 'FAIL':<10} {detail}")
    print(separator)
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Check connectivity to the Tencent Meeting API")
    parser.add_argument("--api-url", help="Override TENCENT_MEETING_API_URL")
    parser.add_argument("--token", help="Override TENCENT_MEETING_AUTH_TOKEN")
    args = parser.parse_args()

    overrides = {}
    if args.api_url:
        overrides["API_URL"] = args.api_url
    if args.token:
        overrides["AUTH_TOKEN"] = args.token
    settings = Settings(**overrides)
    configure_structlog(settings)

    results = asyncio.run(run_checks(settings))
    print_results(results)

    all_passed = all(passed for _, passed, _ in results)
    print("All checks passed." if all_passed else "Some checks FAILED.")
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
