#!/usr/bin/env python3
"""EVTX Triage - Entry point"""

import argparse
import json
import sys
from datetime import datetime

from rich.console import Console

from evtx_triage import VERSION, print_report, report_to_dict, run_analysis, write_csv_outputs
from evtx_triage.aggregator import as_utc
from evtx_triage.config import ConfigError, build_taxonomy, configure_logging, load_config
from evtx_triage.reader import expand_sources

console = Console()


def parse_time(value: str) -> datetime:
    """``YYYY-MM-DD HH:MM:SS`` or ISO-8601, returned in UTC; naive values are taken as UTC"""
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid time: {value!r} (expected YYYY-MM-DD HH:MM:SS)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="EVTX Triage - Forensic triage of Windows event logs",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument("sources", nargs="+", help="EVTX file(s) or folder(s) containing .evtx files")
    parser.add_argument("--start", type=parse_time, help="Ignore events before this time (inclusive bound)")
    parser.add_argument("--end", type=parse_time, help="Ignore events after this time (inclusive bound)")
    parser.add_argument("--export-dir", help="Write Filtered_Timeline/All_Events CSV files here")
    parser.add_argument("-c", "--config", help="YAML configuration file")
    parser.add_argument("-o", "--output", help="Output file (JSON)")
    parser.add_argument("-j", "--json", action="store_true", help="JSON output only")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"EVTX Triage v{VERSION}")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        parser.error(str(e))

    level = "DEBUG" if args.verbose else cfg.get('log_level', 'WARNING')
    configure_logging(level)

    try:
        result = run_analysis(expand_sources(args.sources), args.start, args.end, taxonomy=build_taxonomy(cfg))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(report_to_dict(result), indent=2))
    else:
        print_report(result, console)

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(report_to_dict(result), f, indent=2)
        console.print(f"\n[green]Report saved to:[/] {args.output}")

    if args.export_dir:
        written = write_csv_outputs(args.export_dir, result)
        if written:
            console.print(f"[green]CSV files saved to:[/] {args.export_dir}")


if __name__ == "__main__":
    main()
