"""EVTX Triage - Removable storage device correlation"""

from datetime import datetime
from typing import Dict, List, Optional

from . import patterns
from .models import DeviceFragments, DeviceIdentity


def _contains(text: str, keyword: str) -> bool:
    return keyword.lower() in text.lower()


def is_external_storage(description: str, provider: str) -> bool:
    """Deny-list first, then require a storage keyword or storage provider"""
    if not description or not description.strip():
        return False
    if any(_contains(description, kw) for kw in patterns.STORAGE_DENY_KEYWORDS):
        return False
    if any(_contains(description, kw) for kw in patterns.STORAGE_ALLOW_KEYWORDS):
        return True
    return any(_contains(provider or "", marker) for marker in patterns.STORAGE_PROVIDER_MARKERS)


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def extract_fragments(description: str) -> DeviceFragments:
    if not description:
        return DeviceFragments()
    vid_pids = [
        f"VID_{vid.upper()}&PID_{pid.upper()}"
        for vid, pid in patterns.VID_PID_PATTERN.findall(description)
    ]
    volumes = patterns.VOLUME_GUID_PATTERN.findall(description)
    containers = [c.upper() for c in patterns.CONTAINER_ID_PATTERN.findall(description)]
    return DeviceFragments(vid_pids=vid_pids, volumes=volumes, containers=containers)


def correlation_key(fragments: DeviceFragments, provider: str, event_id: int) -> str:
    """Most durable identity wins: hardware ids, then volume, then container"""
    if fragments.vid_pids:
        return ", ".join(_unique(fragments.vid_pids))
    if fragments.volumes:
        return ", ".join(_unique(fragments.volumes))
    if fragments.containers:
        return "Container " + ", ".join(_unique(fragments.containers))
    return f"{provider} / ID {event_id}"


def trim_snippet(text: str) -> str:
    if len(text) > patterns.MAX_SNIPPET_LENGTH:
        return text[:patterns.MAX_SNIPPET_LENGTH] + patterns.ELLIPSIS
    return text


def add_sample(samples: List[str], text: str) -> None:
    """Append to a first-come, de-duplicated list capped at MAX_SAMPLES"""
    if not text or len(samples) >= patterns.MAX_SAMPLES:
        return
    snippet = trim_snippet(text)
    if snippet not in samples:
        samples.append(snippet)


class DeviceMap:
    """Device identities keyed case-insensitively by correlation key"""

    def __init__(self):
        self._devices: Dict[str, DeviceIdentity] = {}

    def record(self, description: str, provider: str, event_id: int, time: datetime) -> DeviceIdentity:
        fragments = extract_fragments(description)
        key = correlation_key(fragments, provider, event_id)
        device = self._devices.get(key.casefold())
        if device is None:
            device = DeviceIdentity(key=key)
            self._devices[key.casefold()] = device

        device.event_count += 1
        if device.first_seen is None or time < device.first_seen:
            device.first_seen = time
        if device.last_seen is None or time > device.last_seen:
            device.last_seen = time
        device.vid_pids.update(fragments.vid_pids)
        device.volumes.update(fragments.volumes)
        device.containers.update(fragments.containers)
        add_sample(device.samples, description)
        return device

    def get(self, key: str) -> Optional[DeviceIdentity]:
        return self._devices.get(key.casefold())

    def by_event_count(self) -> List[DeviceIdentity]:
        return sorted(self._devices.values(), key=lambda d: d.event_count, reverse=True)

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self):
        return iter(self._devices.values())
