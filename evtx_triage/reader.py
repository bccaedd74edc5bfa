"""EVTX Triage - EVTX record source (python-evtx + xmltodict)"""

import logging
import re
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional
from xml.parsers.expat import ExpatError

import xmltodict
from Evtx.Evtx import Evtx

from .models import DescriptionError, EventRecord, StructuredFields

logger = logging.getLogger(__name__)

SYSTEM_TIME_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[T ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?(?P<tz>Z|[+-]\d{2}:?\d{2})?$"
)


def parse_system_time(value: Optional[str]) -> Optional[datetime]:
    """Parse TimeCreated/@SystemTime into an aware UTC datetime"""
    if not value:
        return None
    match = SYSTEM_TIME_PATTERN.match(value.strip())
    if not match:
        return None
    fraction = (match.group('fraction') or "0")[:6].ljust(6, "0")
    tz = match.group('tz') or "Z"
    if tz == "Z":
        tz = "+00:00"
    elif ":" not in tz:
        tz = f"{tz[:3]}:{tz[3:]}"
    try:
        ts = datetime.fromisoformat(f"{match.group('date')}T{match.group('time')}.{fraction}{tz}")
    except ValueError:
        return None
    return ts.astimezone(timezone.utc)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get('#text')
        return None if value is None else str(value)
    return str(value)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _is_namespace(key: str) -> bool:
    return key == '@xmlns' or key.startswith('@xmlns:')


def _flatten_members(prefix: str, element: Dict[str, Any], flat: Dict[str, str]) -> None:
    """Attributes and child elements of ``element`` as ``prefix + name``"""
    for key, value in element.items():
        if key == '#text' or _is_namespace(key):
            continue
        name = prefix + key.lstrip('@')
        if key.startswith('@'):
            flat[name] = "" if value is None else str(value)
        else:
            _flatten_element(name, value, flat)


def _flatten_element(name: str, value: Any, flat: Dict[str, str]) -> None:
    for item in _as_list(value) or [None]:
        if not isinstance(item, dict):
            flat[name] = "" if item is None else str(item)
            continue
        # Attribute-only elements get no entry of their own
        if '#text' in item:
            flat[name] = str(item['#text'])
        _flatten_members(f"{name}.", item, flat)


def flatten_event_data(event: Dict[str, Any]) -> Dict[str, str]:
    """EventData/Data name/value pairs plus the UserData payload

    UserData carries one provider-specific element; its attributes
    (e.g. DriverFrameworks ``instance``) and children become top-level
    names, deeper members are dotted (``Request.major``).
    """
    flat: Dict[str, str] = {}
    edata = event.get('EventData')
    if isinstance(edata, dict):
        for item in _as_list(edata.get('Data')):
            if isinstance(item, dict) and item.get('@Name'):
                flat[item['@Name']] = _text(item) or ""

    udata = event.get('UserData')
    if isinstance(udata, dict):
        for child in udata.values():
            if isinstance(child, dict):
                _flatten_members("", child, flat)
    return flat


def render_description(event: Dict[str, Any]) -> str:
    """Rendered message when present, else the event data as ``Name: value`` lines"""
    rendering = event.get('RenderingInfo')
    if isinstance(rendering, dict) and rendering.get('Message'):
        return _text(rendering['Message']) or ""

    lines = []
    for section in ('EventData', 'UserData'):
        data = event.get(section)
        if data is None or isinstance(data, str):
            continue
        if not isinstance(data, dict):
            raise DescriptionError(f"unexpected {section} layout")
    for name, value in flatten_event_data(event).items():
        lines.append(f"{name}: {value}")

    # Unnamed EventData items (binary/insertion strings)
    edata = event.get('EventData')
    if isinstance(edata, dict):
        for item in _as_list(edata.get('Data')):
            if isinstance(item, str):
                lines.append(item)
    elif isinstance(edata, str):
        lines.append(edata)
    return "\n".join(lines)


def _int_or_none(value: Any) -> Optional[int]:
    text = _text(value)
    if text is None or not text.strip():
        return None
    try:
        return int(text.strip())
    except ValueError:
        return None


def record_from_xml(xml: str) -> EventRecord:
    """Decode one event's XML; raises ValueError when it carries no usable identifier"""
    try:
        doc = xmltodict.parse(xml)
    except ExpatError as exc:
        raise ValueError(f"malformed event XML: {exc}") from exc

    event = doc.get('Event') if isinstance(doc, dict) else None
    if not isinstance(event, dict):
        raise ValueError("no <Event> element")
    system = event.get('System') or {}

    event_id = _int_or_none(system.get('EventID'))
    if event_id is None:
        raise ValueError("event has no numeric EventID")

    provider = system.get('Provider') or {}
    provider_name = provider.get('@Name') if isinstance(provider, dict) else None
    time_created = system.get('TimeCreated') or {}

    return EventRecord(
        timestamp=parse_system_time(time_created.get('@SystemTime') if isinstance(time_created, dict) else None),
        event_id=event_id,
        provider=provider_name or "Unknown",
        host=_text(system.get('Computer')) or "",
        log_name=_text(system.get('Channel')) or "",
        task=_int_or_none(system.get('Task')),
        fields=StructuredFields(flatten_event_data(event)),
        formatter=partial(render_description, event),
    )


def iter_records(path) -> Iterator[EventRecord]:
    """Yield records from one .evtx file; the file stays open only while iterating"""
    skipped = 0
    with Evtx(str(path)) as log:
        for rec in log.records():
            xml = rec.xml()
            try:
                yield record_from_xml(xml)
            except ValueError as exc:
                skipped += 1
                logger.debug("Skipping undecodable record in %s: %s", path, exc)
    if skipped:
        logger.warning("%d undecodable record(s) skipped in %s", skipped, path)


def expand_sources(targets: Iterable[str]) -> List[str]:
    """Directories expand to their .evtx files; anything else passes through"""
    sources = []
    for target in targets:
        path = Path(target)
        if path.is_dir():
            sources.extend(str(p) for p in sorted(path.glob("*.evtx")))
        else:
            sources.append(str(target))
    return sources
