import pytest

from evtx_triage.noise import check_noise, is_interactive_user

from conftest import make_record


def test_service_logon_is_noise():
    verdict = check_noise(make_record(4624, fields={"LogonType": "5", "TargetUserName": "SYSTEM"}))
    assert verdict.is_noise
    assert verdict.user is None


def test_interactive_logon_reports_user():
    verdict = check_noise(make_record(4624, fields={"LogonType": "2", "TargetUserName": "alice"}))
    assert not verdict.is_noise
    assert verdict.user == "alice"


def test_user_extracted_even_when_logon_is_noise():
    verdict = check_noise(make_record(4624, fields={"logontype": " 5 ", "targetusername": "bob"}))
    assert verdict.is_noise
    assert verdict.user == "bob"


@pytest.mark.parametrize("account", [
    "WS01$", "SYSTEM", "system", "DWM-1", "UMFD-0", "LOCAL SERVICE",
    "NETWORK SERVICE", "ANONYMOUS LOGON", "", None,
])
def test_service_accounts_are_not_users(account):
    assert not is_interactive_user(account)


def test_local_system_privileges_are_noise():
    assert check_noise(make_record(4672, fields={"SubjectUserSid": "S-1-5-18"})).is_noise


def test_other_privileges_are_kept():
    assert not check_noise(make_record(4672, fields={"SubjectUserSid": "S-1-5-21-1-2-3-1001"})).is_noise


def test_missing_fields_are_not_noise():
    assert not check_noise(make_record(4672)).is_noise
    assert not check_noise(make_record(4624)).is_noise


def test_other_events_never_noise():
    assert not check_noise(make_record(4625, fields={"LogonType": "5"})).is_noise
