from dataclasses import replace
from datetime import timedelta, timezone

from evtx_triage.aggregator import Aggregator, within_window
from evtx_triage.models import Category
from evtx_triage.taxonomy import DEFAULT_TAXONOMY

from conftest import BASE_TIME, SECURITY, UMDF, make_record, usb_description


def ingest_all(records, aggregator=None, start=None, end=None):
    aggregator = aggregator or Aggregator()
    summary = aggregator.begin_source("Security.evtx")
    for record in records:
        aggregator.ingest(record, summary, start, end)
    return aggregator.state, summary


def test_logon_and_failed_logon():
    state, summary = ingest_all([
        make_record(4624, fields={"LogonType": "2", "TargetUserName": "ALICE"}),
        make_record(4625, minutes=1),
    ])
    assert list(state.users) == ["ALICE"]
    assert dict(state.category_counts[Category.REMOTE_ACCESS]) == {4624: 1, 4625: 1}
    assert summary.processed == 2
    assert dict(summary.interest) == {4624: 1, 4625: 1}


def test_service_logon_dropped_everywhere():
    state, summary = ingest_all([
        make_record(4624, fields={"LogonType": "5", "TargetUserName": "SYSTEM"}),
    ])
    assert summary.processed == 0
    assert summary.skipped_noise == 1
    assert not state.category_counts[Category.REMOTE_ACCESS]
    assert len(state.timeline) == 0
    assert state.full_log == []
    assert not summary.interest


def test_local_system_privilege_noise_counted_as_skipped():
    state, summary = ingest_all([make_record(4672, fields={"SubjectUserSid": "S-1-5-18"})])
    assert summary.skipped_noise == 1
    assert summary.processed == 0
    assert not state.category_counts[Category.PRIVILEGE_ESCALATION]


def test_users_are_case_insensitive():
    state, _ = ingest_all([
        make_record(4624, fields={"LogonType": "2", "TargetUserName": "alice"}),
        make_record(4624, fields={"LogonType": "10", "TargetUserName": "ALICE"}),
    ])
    assert list(state.users) == ["alice"]


def test_usb_removals_merge_into_one_device():
    state, _ = ingest_all([
        make_record(2102, provider=UMDF, description=usb_description()),
        make_record(2102, provider=UMDF, minutes=5, description=usb_description()),
    ])
    devices = list(state.devices)
    assert len(devices) == 1
    device = devices[0]
    assert device.key == "VID_1234&PID_5678"
    assert device.event_count == 2
    assert device.last_seen - device.first_seen == timedelta(minutes=5)
    assert state.category_counts[Category.USB][2102] == 2
    assert len(state.device_examples[2102]) == 1


def test_non_storage_usb_event_counted_but_not_correlated():
    state, _ = ingest_all([
        make_record(2102, provider=UMDF, description="HID keyboard VID_046D&PID_C31C"),
    ])
    assert state.category_counts[Category.USB][2102] == 1
    assert len(state.devices) == 0
    assert not state.device_examples.get(2102)


def test_process_creation_increments_multiple_counters():
    state, _ = ingest_all([
        make_record(4688, description="NewProcessName: C:\\Users\\a\\OneDrive.exe -encodedcommand SQBFAFgA"),
    ])
    assert state.cloud_processes["OneDrive.exe"] == 1
    assert state.encoded_commands == 1
    assert len(state.timeline) == 0


def test_script_block_email_client():
    state, _ = ingest_all([
        make_record(4104, provider="Microsoft-Windows-PowerShell",
                    description="Start-Process outlook.exe; Start-Process thunderbird.exe"),
    ])
    assert state.email_processes == {"OUTLOOK.EXE": 1, "thunderbird.exe": 1}
    assert state.category_counts[Category.POWERSHELL][4104] == 1


def test_failed_provider_is_not_retried():
    calls = []

    aggregator = Aggregator()
    summary = aggregator.begin_source("System.evtx")
    first = make_record(2102, provider=UMDF, fails=True)
    second = replace(make_record(2102, provider=UMDF), formatter=lambda: calls.append(1) or usb_description())

    aggregator.ingest(first, summary)
    result = aggregator.describe(second)
    aggregator.ingest(second, summary)

    assert not result.ok
    assert calls == []
    assert UMDF.casefold() in aggregator.state.failed_providers
    assert aggregator.state.category_counts[Category.USB][2102] == 2
    assert len(aggregator.state.devices) == 0


def test_uninteresting_ids_are_not_formatted():
    record = make_record(7045, provider="Service Control Manager", fails=True)
    state, summary = ingest_all([record])
    assert summary.processed == 1
    assert not state.failed_providers
    assert len(state.full_log) == 1


def test_missing_timestamp_skipped():
    state, summary = ingest_all([make_record(4625, timestamp=None)])
    assert summary.processed == 0
    assert summary.missing_timestamp == 1
    assert state.full_log == []
    assert len(state.hosts) == 0


def test_window_bounds_inclusive():
    start = BASE_TIME
    end = BASE_TIME + timedelta(hours=1)
    assert within_window(start, start, end)
    assert within_window(end, start, end)
    assert not within_window(start - timedelta(microseconds=1), start, end)
    assert not within_window(end + timedelta(microseconds=1), start, end)
    assert within_window(start, None, None)


def test_window_applied_before_processing():
    state, summary = ingest_all(
        [make_record(4625, minutes=0), make_record(4625, minutes=90)],
        start=BASE_TIME, end=BASE_TIME + timedelta(hours=1),
    )
    assert summary.processed == 1
    assert summary.out_of_window == 1
    assert state.category_counts[Category.REMOTE_ACCESS][4625] == 1


def test_naive_bounds_are_utc():
    naive_start = BASE_TIME.replace(tzinfo=None)
    assert within_window(BASE_TIME, naive_start, None)


def test_security_task_category_label():
    aggregator = Aggregator()
    known = make_record(4624, log_name="Security", task=12544)
    unknown = make_record(4624, log_name="Security", task=99999)
    no_task = make_record(4624, log_name="Security", task=0)
    other_log = make_record(2102, provider=UMDF, log_name="Microsoft-Windows-DriverFrameworks-UserMode/Operational", task=12544)
    assert aggregator.source_label(known) == "Logon"
    assert aggregator.source_label(unknown) == "Security"
    assert aggregator.source_label(no_task) == SECURITY
    assert aggregator.source_label(other_log) == UMDF


def test_timeline_entries_use_taxonomy_description():
    state, _ = ingest_all([make_record(1102, minutes=2), make_record(4720, minutes=1)])
    ordered = state.timeline.sorted_desc()
    assert [e.event_id for e in ordered] == [1102, 4720]
    assert ordered[0].description == DEFAULT_TAXONOMY.describe(1102)
    assert ordered[0].provider == SECURITY


def test_hosts_collected():
    state, _ = ingest_all([make_record(4625, host="WS01"), make_record(4625, host="ws01"), make_record(4625, host="")])
    assert list(state.hosts) == ["WS01"]


def test_naive_and_aware_timestamps_mix():
    naive = BASE_TIME.replace(tzinfo=None)
    eastern = timezone(timedelta(hours=-5))
    state, summary = ingest_all([
        make_record(4625, timestamp=naive),
        make_record(4625, timestamp=BASE_TIME + timedelta(minutes=5)),
        make_record(2102, provider=UMDF, timestamp=naive, description=usb_description()),
        make_record(2102, provider=UMDF, timestamp=(BASE_TIME + timedelta(minutes=9)).astimezone(eastern),
                    description=usb_description()),
    ])
    assert summary.processed == 4

    ordered = state.timeline.sorted_desc()
    assert [e.time for e in ordered] == [
        BASE_TIME + timedelta(minutes=9), BASE_TIME + timedelta(minutes=5), BASE_TIME, BASE_TIME,
    ]
    assert all(e.time.tzinfo is timezone.utc for e in ordered)
    assert all(e.time.tzinfo is timezone.utc for e in state.full_log)
    assert sorted(state.full_log, key=lambda e: e.time)[0].time == BASE_TIME

    device = state.devices.get("VID_1234&PID_5678")
    assert device.first_seen == BASE_TIME
    assert device.last_seen == BASE_TIME + timedelta(minutes=9)
    assert device.last_seen.hour == 12
