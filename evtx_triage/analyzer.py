"""EVTX Triage - Core analysis engine"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from .aggregator import Aggregator, as_utc
from .models import AnalysisResult, EventRecord
from .output import render_report
from .reader import iter_records
from .taxonomy import DEFAULT_TAXONOMY, Taxonomy

logger = logging.getLogger(__name__)

RecordSource = Callable[[str], Iterable[EventRecord]]


class EvtxAnalyzer:
    """Single batch pass over one or more event log files.

    Sources are drained one after another into a shared Aggregator; a
    source that is missing or fails mid-read is noted in its summary and
    the run moves on to the next one.
    """

    def __init__(self, taxonomy: Optional[Taxonomy] = None, record_source: Optional[RecordSource] = None):
        self.taxonomy = taxonomy or DEFAULT_TAXONOMY
        self.record_source = record_source or iter_records

    def analyze_files(self, paths: Sequence[str], start: Optional[datetime] = None,
                      end: Optional[datetime] = None) -> AnalysisResult:
        aggregator = Aggregator(self.taxonomy)
        for path in paths:
            self._analyze_source(aggregator, str(path), start, end)

        state = aggregator.state
        return AnalysisResult(
            report_text=render_report(state),
            timeline=list(state.timeline.entries),
            full_log=list(state.full_log),
            state=state,
        )

    def _analyze_source(self, aggregator: Aggregator, path: str,
                        start: Optional[datetime], end: Optional[datetime]):
        summary = aggregator.begin_source(path)
        if not Path(path).exists():
            summary.found = False
            logger.warning("File not found: %s", path)
            return

        logger.info("Analyzing %s", path)
        records = None
        try:
            records = self.record_source(path)
            for record in records:
                aggregator.ingest(record, summary, start, end)
        except FileNotFoundError:
            summary.found = False
            logger.warning("File not found: %s", path)
        except Exception as exc:
            summary.error = str(exc) or exc.__class__.__name__
            logger.warning("Failed reading %s: %s", path, summary.error)
        finally:
            close = getattr(records, 'close', None)
            if close is not None:
                close()
        logger.info("%s: %d processed, %d noise skipped", path, summary.processed, summary.skipped_noise)


def run_analysis(paths: Sequence[str], start: Optional[datetime] = None, end: Optional[datetime] = None,
                 taxonomy: Optional[Taxonomy] = None,
                 record_source: Optional[RecordSource] = None) -> AnalysisResult:
    """Validate caller input, then run to completion"""
    if not paths:
        raise ValueError("No EVTX files were provided.")
    if start is not None and end is not None and as_utc(end) < as_utc(start):
        raise ValueError("End time must be after start time.")
    return EvtxAnalyzer(taxonomy, record_source).analyze_files(paths, start, end)
