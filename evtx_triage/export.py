"""EVTX Triage - CSV export"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from . import patterns
from .models import AnalysisResult
from .output import full_log_rows, timeline_rows

logger = logging.getLogger(__name__)

TIMELINE_HEADER = ("Time", "EventID", "Description", "Provider")
FULL_LOG_HEADER = ("Time", "EventID", "Source / Task Category")


def _write_rows(path: Path, header: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
    # QUOTE_MINIMAL quotes on comma, quote, CR or LF and doubles embedded quotes
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
        writer.writerow(header)
        writer.writerows(rows)


def write_csv_outputs(output_dir, result: AnalysisResult,
                      now: Optional[datetime] = None) -> Optional[Tuple[Path, Path]]:
    """Write the filtered timeline and the full event list; failures are logged, not raised"""
    stamp = (now or datetime.now()).strftime(patterns.EXPORT_STAMP_FORMAT)
    out = Path(output_dir)
    timeline_path = out / f"Filtered_Timeline_{stamp}.csv"
    full_path = out / f"All_Events_{stamp}.csv"
    try:
        _write_rows(timeline_path, TIMELINE_HEADER, timeline_rows(result))
        _write_rows(full_path, FULL_LOG_HEADER, full_log_rows(result))
    except OSError as exc:
        logger.warning("CSV export to %s failed: %s", out, exc)
        return None
    return timeline_path, full_path
