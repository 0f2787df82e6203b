from __future__ import annotations

import argparse
import sys

from .config import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT_MS, load_settings
from .errors import ParseError, RequestError
from .logger import create_logger
from .models import ScanRequest
from .output import print_report, save_report
from .scanner import NetworkScanner


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    p = argparse.ArgumentParser(prog="netsweep", description="TCP host and port scanner")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("scan", help="Run a scan and print the report")
    s.add_argument("--target", required=True, help="IP, hostname, or CIDR block")
    s.add_argument("--ports", required=True, help="Port spec: 1-1024 or 22,80,443 or mixed")
    s.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY,
                   help=f"Hosts scanned at once (default: {DEFAULT_CONCURRENCY})")
    s.add_argument("--port-concurrency", type=int, default=None,
                   help="Ports probed at once per host (default: same as --concurrency)")
    s.add_argument("--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS,
                   help=f"Connect timeout in milliseconds (default: {DEFAULT_TIMEOUT_MS})")
    s.add_argument("--max-connections", type=int, default=None,
                   help="Cap on connection attempts in flight across the whole scan")
    s.add_argument("--grab-banner", action="store_true", help="Peek at service banners")
    s.add_argument("--alive-only", action="store_true", help="Only display/save alive hosts")
    s.add_argument("--format", choices=["txt", "csv", "json", "html"], help="Save report to file")
    s.add_argument("--out-dir", default="SCANS", help="Output directory for saved files")
    s.add_argument("--db", default=None, help="Also store the report in this SQLite file")

    v = sub.add_parser("serve", help="Run the web API")
    v.add_argument("--host", default=settings.host)
    v.add_argument("--port", type=int, default=settings.port)
    v.add_argument("--db", default=settings.db_path, help="SQLite file for stored reports")
    return p


def run_scan(args: argparse.Namespace) -> int:
    logger = create_logger(load_settings().log_path)
    try:
        request = ScanRequest(
            target=args.target,
            ports=args.ports,
            concurrency=args.concurrency,
            timeout_ms=args.timeout_ms,
            grab_banner=args.grab_banner,
            port_concurrency=args.port_concurrency,
            max_connections=args.max_connections,
        )
        report = NetworkScanner(logger=logger).run(request, notes="Scan initiated via CLI")
    except (ParseError, RequestError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print_report(report, alive_only=args.alive_only)

    if args.format:
        path = save_report(report, fmt=args.format, out_dir=args.out_dir, alive_only=args.alive_only)
        print(f"Saved report to {path}")

    if args.db:
        from .store import ReportStore

        store = ReportStore(args.db)
        try:
            scan_id = store.save(report)
        finally:
            store.close()
        print(f"Stored report as scan {scan_id} in {args.db}")

    return 0


def run_server(args: argparse.Namespace) -> int:
    from .store import ReportStore
    from .web import create_app

    app = create_app(store=ReportStore(args.db))
    app.run(host=args.host, port=args.port)
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "scan":
        return run_scan(args)
    return run_server(args)
