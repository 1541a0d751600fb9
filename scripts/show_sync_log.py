#!/usr/bin/env python3
"""Print the recent Notion sync activity of a running service.

Usage:
    python scripts/show_sync_log.py --url http://localhost:8000 --limit 20

Shows the same newest-first list the host's settings screen renders.
Exit code 0 if the log was fetched, 1 otherwise.
"""

import argparse
import sys

import httpx

TIMEOUT = 15.0


def fetch_log(url: str, limit: int) -> tuple[list, str]:
    """GET /api/v1/sync/log and return (entries, error)."""
    log_url = url.rstrip("/") + "/api/v1/sync/log"
    try:
        response = httpx.get(log_url, params={"limit": limit}, timeout=TIMEOUT)
    except httpx.TimeoutException:
        return [], "Request timed out"
    except httpx.ConnectError as exc:
        return [], f"Connection failed: {exc}"
    except httpx.HTTPError as exc:
        return [], f"HTTP error: {exc}"

    if response.status_code != 200:
        return [], f"HTTP {response.status_code}"
    try:
        return response.json(), ""
    except ValueError:
        return [], "Response is not valid JSON"


def print_entries(entries: list) -> None:
    """Print a formatted table of log entries."""
    header = f"{'TIME':<26} {'POST':<8} {'NOTION STATUS':<16} {'HTTP':<6} {'RESULT':<8} {'ERROR'}"
    separator = "-" * 100
    print()
    print(separator)
    print(header)
    print(separator)
    for entry in entries:
        result = "OK" if entry.get("success") else "FAIL"
        code = entry.get("status_code") or "-"
        print(
            f"{entry.get('timestamp', '')[:25]:<26} {entry.get('post_id', ''):<8} "
            f"{entry.get('notion_status', ''):<16} {code!s:<6} {result:<8} {entry.get('error', '')}"
        )
    print(separator)
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Show recent Notion sync activity")
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Base URL of the sync service",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of entries to show (1-50)",
    )
    args = parser.parse_args()

    entries, error = fetch_log(args.url, max(1, min(args.limit, 50)))
    if error:
        print(f"Could not fetch sync log: {error}")
        sys.exit(1)

    if not entries:
        print("No sync activity yet.")
    else:
        print_entries(entries)
    sys.exit(0)


if __name__ == "__main__":
    main()
