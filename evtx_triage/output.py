"""EVTX Triage - Report output"""

from typing import Dict, List

from rich import box
from rich.console import Console
from rich.table import Table

from . import patterns
from .aggregator import RunState
from .models import AnalysisResult, Category, SourceSummary

RULE = "-" * 70
BANNER = "=" * 64
DOTTED_FIELD_WIDTH = 32


def _fmt_time(value) -> str:
    return value.strftime(patterns.TIME_FORMAT) if value is not None else ""


def _banner(lines: List[str], title: str) -> None:
    lines.append(BANNER)
    lines.append(f"  {title}")
    lines.append(BANNER)
    lines.append("")


def format_event_line(event_id: int, count: int, description: str) -> str:
    """``  ID 4624 ............. 12 events   (Successful logon)``"""
    line = f"  ID {event_id} "
    line += "." * max(3, DOTTED_FIELD_WIDTH - len(line))
    line += f" {count} events"
    if description and description != patterns.UNKNOWN_DESCRIPTION:
        line += f"   ({description})"
    return line


def _render_system_info(lines: List[str], state: RunState) -> None:
    lines.append(RULE)
    lines.append(" System Information")
    lines.append(RULE)
    lines.append("")
    hosts = list(state.hosts)
    lines.append(f"  [ Computers Identified ({len(hosts)}) ]")
    if hosts:
        lines.extend(f"   - {h}" for h in hosts)
    else:
        lines.append("   - None identified")
    lines.append("")
    users = sorted(state.users, key=str.casefold)
    lines.append(f"  [ User Accounts Observed (via Logon Events) ({len(users)}) ]")
    if users:
        lines.extend(f"   - {u}" for u in users)
    else:
        lines.append("   - None identified (or no 4624 events found)")
    lines.append("")


def _render_source(lines: List[str], summary: SourceSummary, state: RunState) -> None:
    if not summary.found:
        lines.append(f"[!] File not found: {summary.path}")
        lines.append("")
        return
    lines.append(RULE)
    lines.append(f" File: {summary.name}")
    lines.append(RULE)
    if summary.error:
        lines.append(f"[ ERROR ] {summary.path}: {summary.error}")
    lines.append("[ File Summary ]")
    lines.append(f"  Total processed events: {summary.processed}")
    if summary.skipped_noise:
        lines.append(f"  Skipped (noise): {summary.skipped_noise}")
    if summary.out_of_window:
        lines.append(f"  Outside time window: {summary.out_of_window}")
    if summary.missing_timestamp:
        lines.append(f"  Missing timestamp: {summary.missing_timestamp}")
    lines.append("")
    if summary.interest:
        lines.append("[ Events of Forensic Interest ]")
        for event_id, count in summary.interest.most_common():
            lines.append(format_event_line(event_id, count, state.taxonomy.describe(event_id)))
    lines.append("")


def _render_category(lines: List[str], category: Category, state: RunState) -> None:
    lines.append(RULE)
    lines.append(f"[ {category.title} ]")
    counts = state.category_counts[category]
    if not counts:
        lines.append("  No matching events found in loaded logs.")
    for event_id, count in counts.most_common():
        lines.append(format_event_line(event_id, count, state.taxonomy.describe(event_id)))
        for example in state.device_examples.get(event_id, []):
            lines.append(f"    e.g., {example}")
    lines.append("")


def _render_devices(lines: List[str], state: RunState) -> None:
    lines.append("[ USB Device Overview (Removable Storage Only) ]")
    if not len(state.devices):
        lines.append("  No external removable storage devices identified.")
    for device in state.devices.by_event_count():
        lines.append(f"  Device: {device.key}")
        lines.append(f"    Events: {device.event_count}")
        if device.first_seen is not None and device.last_seen is not None:
            lines.append(f"    First Seen: {_fmt_time(device.first_seen)}  |  Last Seen: {_fmt_time(device.last_seen)}")
        if device.containers:
            lines.append(f"    Container IDs: {', '.join(sorted(device.containers))}")
        if device.volumes:
            lines.append(f"    Volumes: {', '.join(sorted(device.volumes))}")
        lines.append("")
    lines.append("")


def _render_process_indicators(lines: List[str], state: RunState) -> None:
    if not (state.cloud_processes or state.email_processes or state.encoded_commands):
        return
    lines.append("[ PROCESS-BASED EXFILTRATION INDICATORS (4688 / 4104) ]")
    for name, count in state.cloud_processes.most_common():
        lines.append(f"    {name:<25} {count} process creation events")
    for name, count in state.email_processes.most_common():
        lines.append(f"    {name:<25} {count} process creation events")
    if state.encoded_commands:
        lines.append("")
        lines.append(f"  PowerShell -EncodedCommand usage: {state.encoded_commands} events.")
    lines.append("")


def _render_timeline(lines: List[str], state: RunState) -> None:
    _banner(lines, "TIMELINE")
    if not len(state.timeline):
        lines.append("  No timeline-relevant events found in loaded logs.")
    for entry in state.timeline.sorted_desc():
        desc = f" ({entry.description})" if entry.description.strip() else ""
        lines.append(f"  {_fmt_time(entry.time)}  -  ID {entry.event_id}{desc}")
    lines.append("")


def render_report(state: RunState) -> str:
    lines: List[str] = []
    _render_system_info(lines, state)
    lines.append("")

    _banner(lines, "INDIVIDUAL LOG FILE SUMMARY")
    for summary in state.sources:
        _render_source(lines, summary, state)

    _banner(lines, "CATEGORY SUMMARY")
    for category in Category:
        _render_category(lines, category, state)

    _render_devices(lines, state)
    _render_process_indicators(lines, state)
    lines.append("")
    _render_timeline(lines, state)
    return "\n".join(lines) + "\n"


def timeline_rows(result: AnalysisResult) -> List[List[str]]:
    """Export schema 1: Time, EventID, Description, Provider"""
    ordered = sorted(result.timeline, key=lambda e: e.time, reverse=True)
    return [[_fmt_time(e.time), str(e.event_id), e.description, e.provider] for e in ordered]


def full_log_rows(result: AnalysisResult) -> List[List[str]]:
    """Export schema 2: Time, EventID, Source / Task Category"""
    ordered = sorted(result.full_log, key=lambda e: e.time, reverse=True)
    return [[_fmt_time(e.time), str(e.event_id), e.source_or_category] for e in ordered]


def report_to_dict(result: AnalysisResult) -> Dict:
    state = result.state
    return {
        'summary': {
            'total_processed': state.processed,
            'timeline_events': len(result.timeline),
            'all_events': len(result.full_log),
            'devices': len(state.devices),
        },
        'computers': list(state.hosts),
        'users': sorted(state.users, key=str.casefold),
        'sources': [
            {
                'path': s.path,
                'found': s.found,
                'processed': s.processed,
                'skipped_noise': s.skipped_noise,
                'out_of_window': s.out_of_window,
                'error': s.error,
                'interest': {str(k): v for k, v in s.interest.most_common()},
            }
            for s in state.sources
        ],
        'categories': {
            cat.name.lower(): {str(k): v for k, v in state.category_counts[cat].most_common()}
            for cat in Category
        },
        'devices': [
            {
                'key': d.key,
                'events': d.event_count,
                'first_seen': _fmt_time(d.first_seen),
                'last_seen': _fmt_time(d.last_seen),
                'vid_pids': sorted(d.vid_pids),
                'volumes': sorted(d.volumes),
                'containers': sorted(d.containers),
                'samples': list(d.samples),
            }
            for d in state.devices.by_event_count()
        ],
        'process_indicators': {
            'cloud': dict(state.cloud_processes.most_common()),
            'email': dict(state.email_processes.most_common()),
            'encoded_commands': state.encoded_commands,
        },
    }


def print_report(result: AnalysisResult, console: Console):
    state = result.state

    console.print("\n" + "═" * 70, style="cyan")
    console.print("              EVTX TRIAGE REPORT", style="bold cyan")
    console.print("═" * 70, style="cyan")

    table = Table(box=box.ROUNDED, title="Category Totals")
    table.add_column("Category", style="cyan")
    table.add_column("Events", style="white", justify="right")
    for category in Category:
        total = sum(state.category_counts[category].values())
        table.add_row(category.title, f"[{'red' if total else 'green'}]{total:,}[/]")
    console.print(table)

    console.print(result.report_text, markup=False, highlight=False, soft_wrap=True)
