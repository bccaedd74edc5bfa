"""EVTX Triage - Run state and per-record aggregation"""

import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Set

from . import patterns
from .classifier import classify
from .devices import DeviceMap, add_sample, is_external_storage
from .models import (
    Category, Classification, DescriptionError, DescriptionResult,
    EventRecord, FullLogEntry, SourceSummary,
)
from .noise import check_noise
from .taxonomy import DEFAULT_TAXONOMY, Taxonomy
from .timeline import TimelineBuilder

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes converted to UTC; naive ones are taken to be UTC"""
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def within_window(ts: datetime, start: Optional[datetime] = None, end: Optional[datetime] = None) -> bool:
    ts = as_utc(ts)
    if start is not None and ts < as_utc(start):
        return False
    if end is not None and ts > as_utc(end):
        return False
    return True


class CaseInsensitiveSet:
    """Keeps the first spelling seen for each name"""

    def __init__(self):
        self._values: Dict[str, str] = {}

    def add(self, value: str) -> None:
        self._values.setdefault(value.casefold(), value)

    def __contains__(self, value: str) -> bool:
        return value.casefold() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values.values())

    def __len__(self) -> int:
        return len(self._values)


class RunState:
    """All mutable state for one analysis run; only ever grows"""

    def __init__(self, taxonomy: Taxonomy = DEFAULT_TAXONOMY):
        self.taxonomy = taxonomy
        self.category_counts: Dict[Category, Counter] = {cat: Counter() for cat in Category}
        self.cloud_processes: Counter = Counter()
        self.email_processes: Counter = Counter()
        self.encoded_commands = 0
        self.devices = DeviceMap()
        self.device_examples: Dict[int, List[str]] = {}
        self.hosts = CaseInsensitiveSet()
        self.users = CaseInsensitiveSet()
        self.failed_providers: Set[str] = set()
        self.timeline = TimelineBuilder()
        self.full_log: List[FullLogEntry] = []
        self.sources: List[SourceSummary] = []

    @property
    def processed(self) -> int:
        return sum(s.processed for s in self.sources)


class Aggregator:
    """Gates, classifies and applies records to a RunState"""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        self.state = RunState(taxonomy or DEFAULT_TAXONOMY)
        self.taxonomy = self.state.taxonomy

    def begin_source(self, path: str) -> SourceSummary:
        summary = SourceSummary(path=str(path))
        self.state.sources.append(summary)
        return summary

    def ingest(self, record: EventRecord, summary: SourceSummary,
               start: Optional[datetime] = None, end: Optional[datetime] = None) -> bool:
        """Process one record; returns True when it counted as processed"""
        if record.timestamp is None:
            summary.missing_timestamp += 1
            return False
        # Everything stored below compares timestamps, so they must all be aware
        ts = as_utc(record.timestamp)
        if ts is not record.timestamp:
            record = replace(record, timestamp=ts)
        if not within_window(ts, start, end):
            summary.out_of_window += 1
            return False

        if record.host:
            self.state.hosts.add(record.host)

        verdict = check_noise(record)
        if verdict.user:
            self.state.users.add(verdict.user)
        if verdict.is_noise:
            summary.skipped_noise += 1
            logger.debug("Dropped noise event %s from %s", record.event_id, summary.path)
            return False

        summary.processed += 1
        self.state.full_log.append(FullLogEntry(
            time=record.timestamp,
            event_id=record.event_id,
            source_or_category=self.source_label(record),
        ))

        description = DescriptionResult("")
        if record.event_id in self.taxonomy.interesting_ids:
            description = self.describe(record)

        classification = classify(record.event_id, record.provider, self.taxonomy)
        self.apply(record, classification, description.text, summary)
        return True

    def source_label(self, record: EventRecord) -> str:
        provider = record.provider or "Unknown"
        if (record.log_name or "").lower() != patterns.SECURITY_LOG_NAME.lower():
            return provider
        if not record.task:
            return provider
        return self.taxonomy.task_name(record.task) or patterns.SECURITY_LOG_NAME

    def describe(self, record: EventRecord) -> DescriptionResult:
        provider_key = (record.provider or "").casefold()
        if provider_key in self.state.failed_providers:
            return DescriptionResult("", error="provider previously failed to format")
        try:
            return DescriptionResult(record.format_description())
        except DescriptionError as exc:
            self.state.failed_providers.add(provider_key)
            logger.debug("Cannot format descriptions for provider %s: %s", record.provider, exc)
            return DescriptionResult("", error=str(exc))

    def apply(self, record: EventRecord, classification: Classification,
              description: str, summary: SourceSummary) -> None:
        state = self.state
        event_id = record.event_id
        provider = record.provider or ""

        if classification.focused:
            state.category_counts[classification.category][event_id] += 1
            summary.interest[event_id] += 1
            state.timeline.append(record.timestamp, event_id, self.taxonomy.describe(event_id), provider)

        external = bool(description) and (classification.device_info or classification.usb_raw) \
            and is_external_storage(description, provider)

        if classification.device_info and external:
            add_sample(state.device_examples.setdefault(event_id, []), description)

        if classification.usb_raw and external:
            state.devices.record(description, provider, event_id, record.timestamp)

        if classification.process_indicator and description:
            self.scan_process_indicators(description)

    def scan_process_indicators(self, description: str) -> None:
        lowered = description.lower()
        for name in self.taxonomy.cloud_process_names:
            if name.lower() in lowered:
                self.state.cloud_processes[name] += 1
        for name in self.taxonomy.email_client_process_names:
            if name.lower() in lowered:
                self.state.email_processes[name] += 1
        if patterns.ENCODED_COMMAND_MARKER.lower() in lowered:
            self.state.encoded_commands += 1
