from datetime import datetime, timedelta, timezone

import pytest

from evtx_triage.models import DescriptionError, EventRecord, StructuredFields

SECURITY = "Microsoft-Windows-Security-Auditing"
UMDF = "Microsoft-Windows-DriverFrameworks-UserMode"
BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_record(event_id, provider=SECURITY, minutes=0, description="", fields=None,
                host="WS01", log_name="", task=None, timestamp=..., fails=False):
    if timestamp is ...:
        timestamp = BASE_TIME + timedelta(minutes=minutes)

    def formatter():
        if fails:
            raise DescriptionError("no message table")
        return description

    return EventRecord(
        timestamp=timestamp,
        event_id=event_id,
        provider=provider,
        host=host,
        log_name=log_name,
        task=task,
        fields=StructuredFields(fields or {}),
        formatter=formatter,
    )


def usb_description(vid_pid="VID_1234&PID_5678"):
    return f"Device USBSTOR\\Disk&Ven_Generic {vid_pid} was requested for removal"


class FakeSource:
    """Maps a path to a list of records; ``closed`` records which sources were released"""

    def __init__(self, records_by_path, fail_after=None):
        self.records_by_path = records_by_path
        self.fail_after = fail_after or {}
        self.closed = []

    def __call__(self, path):
        return self._iterate(path)

    def _iterate(self, path):
        try:
            for i, record in enumerate(self.records_by_path.get(path, [])):
                if path in self.fail_after and i >= self.fail_after[path]:
                    raise OSError("corrupt chunk header")
                yield record
        finally:
            self.closed.append(path)


@pytest.fixture
def evtx_file(tmp_path):
    def _make(name="Security.evtx"):
        path = tmp_path / name
        path.write_bytes(b"ElfFile\x00")
        return str(path)
    return _make
