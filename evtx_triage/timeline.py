"""EVTX Triage - Timeline of focused-category events"""

from datetime import datetime
from typing import List

from .models import TimelineEntry


class TimelineBuilder:
    """Append-only; ordering happens only when read back via ``sorted_desc``"""

    def __init__(self):
        self.entries: List[TimelineEntry] = []

    def append(self, time: datetime, event_id: int, description: str, provider: str) -> TimelineEntry:
        entry = TimelineEntry(time=time, event_id=event_id, description=description, provider=provider)
        self.entries.append(entry)
        return entry

    def sorted_desc(self) -> List[TimelineEntry]:
        # Stable sort: equal timestamps keep encounter order
        return sorted(self.entries, key=lambda e: e.time, reverse=True)

    def __len__(self) -> int:
        return len(self.entries)
