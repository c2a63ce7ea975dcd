"""
Command-line interface for the link scanner.
"""
from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from collections import Counter
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from linkscan.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_URLS,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    BasicAuth,
    ScanConfig,
)
from linkscan.control import RunState
from linkscan.errors import LinkScanError
from linkscan.results import ScanResult, ScanStatus
from linkscan.scanner import Scan, ScanReport
from linkscan.scheduler import ProgressSnapshot


def print_summary(report: ScanReport) -> None:
    """Print scan summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("SCAN SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    statuses = Counter(r.status for r in report.results)
    sys.stderr.write(f"Finished:               {report.reason.value}\n")
    sys.stderr.write(f"Total URLs checked:     {len(report.results)}\n")
    sys.stderr.write(f"OK:                     {statuses[ScanStatus.OK]}\n")
    sys.stderr.write(f"Broken:                 {statuses[ScanStatus.BROKEN]}\n")
    sys.stderr.write(f"Errors:                 {statuses[ScanStatus.ERROR]}\n")
    if report.unchecked:
        sys.stderr.write(f"Not checked:            {len(report.unchecked)}\n")
    sys.stderr.write(f"Duration:               {report.duration_s:.1f}s\n\n")

    failing = report.failing
    if failing:
        sys.stderr.write("Broken or unreachable links:\n")
        for result in failing:
            label = str(result.status_code) if result.status_code is not None else result.error_kind or "ERR"
            sys.stderr.write(f"  {label} {result.url}\n")
            for page in sorted(result.found_on):
                sys.stderr.write(f"      found on {page}\n")
    else:
        sys.stderr.write("No broken links found.\n")

    sys.stderr.write("\n")


def print_scan_line(snapshot: ProgressSnapshot, result: ScanResult) -> None:
    """Print single scan result line."""
    status_str = str(result.status_code) if result.status_code is not None else "ERR"
    sys.stderr.write(
        f"\r\033[K[{snapshot.urls_scanned}/{snapshot.total_urls_known}] "
        f"{status_str} {result.url} (broken: {snapshot.broken_count}, errors: {snapshot.error_count})\n"
    )
    sys.stderr.flush()


def generate_output_path(start_url: str) -> Path:
    """Generate output path: scans/{hostname}_{datetime}.json"""
    parsed = urlparse(start_url)
    hostname = parsed.hostname or "unknown"
    hostname_safe = hostname.replace(".", "_")
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    scans_dir = Path("scans")
    scans_dir.mkdir(exist_ok=True)

    return scans_dir / f"{hostname_safe}_{timestamp}.json"


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Build the scan config from an optional JSON file overlaid with CLI flags."""
    config = ScanConfig()
    if args.config:
        data = json.loads(Path(args.config).read_text(encoding="utf-8"))
        config = ScanConfig.from_mapping(data)

    overrides = {}
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.max_pages is not None:
        overrides["max_urls"] = args.max_pages
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    if args.timeout is not None:
        overrides["timeout_ms"] = int(args.timeout * 1000)
    if args.total_timeout is not None:
        overrides["total_timeout_ms"] = int(args.total_timeout * 1000)
    if args.user_agent is not None:
        overrides["user_agent"] = args.user_agent
    if args.allow_cross_origin:
        overrides["same_origin_only"] = False
    if args.include_subdomains:
        overrides["include_subdomains"] = True
    if args.skip_external:
        overrides["check_external"] = False
    if args.exclude:
        overrides["regex_exclusions"] = config.regex_exclusions + tuple(args.exclude)
    if args.exclude_wildcard:
        overrides["wildcard_exclusions"] = config.wildcard_exclusions + tuple(args.exclude_wildcard)
    if args.exclude_selector:
        overrides["exclude_selectors"] = config.exclude_selectors + tuple(args.exclude_selector)
    if args.auth:
        username, sep, password = args.auth.partition(":")
        if not sep:
            raise argparse.ArgumentTypeError("--auth must be USER:PASS")
        overrides["auth"] = BasicAuth(username, password)

    return replace(config, **overrides)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl a site from a start URL, check every link and output JSON results."
    )
    parser.add_argument("start_url", help="Start URL (e.g. https://example.com)")
    parser.add_argument("--max-depth", type=int, help=f"Maximum link depth from the start URL (default: {DEFAULT_MAX_DEPTH})")
    parser.add_argument("--max-pages", type=int, help=f"Maximum URLs to check (default: {DEFAULT_MAX_URLS})")
    parser.add_argument("--concurrency", type=int, help=f"Simultaneous requests (default: {DEFAULT_CONCURRENCY})")
    parser.add_argument("--timeout", type=float, help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_MS // 1000})")
    parser.add_argument("--total-timeout", type=float, help="Stop the scan after this many seconds")
    parser.add_argument("--user-agent", help=f"User-Agent header (default: {DEFAULT_USER_AGENT})")
    parser.add_argument("--allow-cross-origin", action="store_true", help="Also crawl pages on other origins")
    parser.add_argument("--include-subdomains", action="store_true", help="Treat subdomains as the same site")
    parser.add_argument("--skip-external", action="store_true", help="Do not check links to other origins")
    parser.add_argument("--exclude", action="append", metavar="REGEX", help="Ignore URLs matching this regex (repeatable)")
    parser.add_argument("--exclude-wildcard", action="append", metavar="PATTERN", help="Ignore URLs matching this wildcard (repeatable)")
    parser.add_argument("--exclude-selector", action="append", metavar="CSS", help="Ignore links inside elements matching this selector (repeatable)")
    parser.add_argument("--auth", metavar="USER:PASS", help="HTTP basic-auth credentials")
    parser.add_argument("--config", metavar="FILE", help="JSON scan config file")
    parser.add_argument("--out", help="Output file path, or '-' for stdout (default: auto-generated in scans/)")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--verbose", action="store_true", help="Show progress and summary")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the scanner CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = build_config(args)
        scanner = Scan(
            args.start_url,
            config,
            on_progress=print_scan_line if args.verbose else None,
        )
    except (LinkScanError, argparse.ArgumentTypeError, OSError, ValueError) as e:
        sys.stderr.write(f"error: {e}\n")
        return 2

    # Ctrl-C stops the scan but still writes what was checked so far
    previous_handler = signal.signal(signal.SIGINT, lambda *_: scanner.stop())
    try:
        scanner.start()
        while (report := scanner.wait(0.5)) is None:
            if scanner.state is RunState.DONE:
                break
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if report is None:
        sys.stderr.write("error: scan ended without a report\n")
        return 1

    if args.verbose:
        print_summary(report)

    payload = [r.to_dict() for r in report.results]
    json_text = json.dumps(payload, ensure_ascii=False, indent=2 if args.pretty else None)

    if args.out == "-":
        print(json_text)
    else:
        output_path = Path(args.out) if args.out else generate_output_path(args.start_url)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json_text, encoding="utf-8")
        if args.verbose:
            sys.stderr.write(f"Results written to: {output_path}\n")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
