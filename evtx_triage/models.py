"""EVTX Triage - Data models"""

from collections import Counter
from collections.abc import Mapping as MappingBase
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Mapping, Optional, Set

if TYPE_CHECKING:
    from .aggregator import RunState


class Category(Enum):
    """Forensic categories, in report order"""
    FILE_ACCESS = "File Access / Deletion / Network Shares"
    USB = "USB / Removable Media Activity"
    NETWORK = "Network Activity (Firewall)"
    REMOTE_ACCESS = "Remote Access / Logon / RDP"
    PRIVILEGE_ESCALATION = "Privilege Escalation / Account Changes"
    ANTI_FORENSICS = "Anti-Forensics / Log Tampering"
    POWERSHELL = "PowerShell / Scripted Activity"
    EMAIL_TRUST = "Email Trust / Certificate Issues"

    @property
    def title(self) -> str:
        return self.value


class StructuredFields(MappingBase):
    """Read-only name/value view of an event's data section, keyed case-insensitively"""

    def __init__(self, items: Optional[Mapping[str, str]] = None):
        self._items: Dict[str, str] = {}
        self._names: Dict[str, str] = {}
        for name, value in (items or {}).items():
            self._items[name.casefold()] = value
            self._names[name.casefold()] = name

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._items.get(name.casefold(), default)

    def __getitem__(self, name: str) -> str:
        return self._items[name.casefold()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"StructuredFields({dict(zip(self._names.values(), self._items.values()))!r})"


class DescriptionError(Exception):
    """Raised by a record's formatter when its description cannot be rendered"""


@dataclass(frozen=True)
class DescriptionResult:
    text: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class EventRecord:
    """One decoded event log entry"""
    timestamp: Optional[datetime]
    event_id: int
    provider: str
    host: str = ""
    log_name: str = ""
    task: Optional[int] = None
    fields: StructuredFields = field(default_factory=StructuredFields)
    formatter: Optional[Callable[[], str]] = field(default=None, compare=False, repr=False)

    def format_description(self) -> str:
        """Render the human-readable description; may raise DescriptionError"""
        if self.formatter is None:
            return ""
        return self.formatter() or ""


@dataclass(frozen=True)
class Classification:
    """Decision for one record; applied to the run state by the aggregator"""
    category: Optional[Category] = None
    usb_raw: bool = False
    device_info: bool = False
    process_indicator: bool = False

    @property
    def focused(self) -> bool:
        return self.category is not None


@dataclass(frozen=True)
class NoiseVerdict:
    is_noise: bool = False
    user: Optional[str] = None


@dataclass(frozen=True)
class DeviceFragments:
    """Identity fragments extracted from one description"""
    vid_pids: List[str] = field(default_factory=list)
    volumes: List[str] = field(default_factory=list)
    containers: List[str] = field(default_factory=list)


@dataclass
class DeviceIdentity:
    """Removable storage device merged from one or more events"""
    key: str
    event_count: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    vid_pids: Set[str] = field(default_factory=set)
    volumes: Set[str] = field(default_factory=set)
    containers: Set[str] = field(default_factory=set)
    samples: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TimelineEntry:
    time: datetime
    event_id: int
    description: str
    provider: str


@dataclass(frozen=True)
class FullLogEntry:
    time: datetime
    event_id: int
    source_or_category: str


@dataclass
class SourceSummary:
    """Per-file tallies and notes"""
    path: str
    found: bool = True
    processed: int = 0
    skipped_noise: int = 0
    out_of_window: int = 0
    missing_timestamp: int = 0
    interest: Counter = field(default_factory=Counter)
    error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.replace("\\", "/").rsplit("/", 1)[-1].upper()


@dataclass
class AnalysisResult:
    report_text: str = ""
    timeline: List[TimelineEntry] = field(default_factory=list)
    full_log: List[FullLogEntry] = field(default_factory=list)
    state: Optional["RunState"] = field(default=None, repr=False)
