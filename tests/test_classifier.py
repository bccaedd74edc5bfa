import pytest

from evtx_triage.classifier import classify, is_usb_provider
from evtx_triage.models import Category

from conftest import SECURITY, UMDF


@pytest.mark.parametrize("event_id,provider,expected", [
    (4663, SECURITY, Category.FILE_ACCESS),
    (5145, SECURITY, Category.FILE_ACCESS),
    (2102, UMDF, Category.USB),
    (400, "Microsoft-Windows-Kernel-PnP", Category.USB),
    (1006, "Microsoft-Windows-Partition", Category.USB),
    (5156, SECURITY, Category.NETWORK),
    (4624, SECURITY, Category.REMOTE_ACCESS),
    (1149, "Microsoft-Windows-TerminalServices-RemoteConnectionManager", Category.REMOTE_ACCESS),
    (4720, SECURITY, Category.PRIVILEGE_ESCALATION),
    (1102, SECURITY, Category.ANTI_FORENSICS),
    (104, "Microsoft-Windows-Eventlog", Category.ANTI_FORENSICS),
    (4104, "Microsoft-Windows-PowerShell", Category.POWERSHELL),
    (4107, "Microsoft-Windows-CAPI2", Category.EMAIL_TRUST),
])
def test_qualified_categories(event_id, provider, expected):
    result = classify(event_id, provider)
    assert result.category is expected
    assert result.focused


@pytest.mark.parametrize("event_id,provider", [
    (4663, "Microsoft-Windows-Kernel-General"),
    (2102, "Microsoft-Windows-Kernel-Power"),
    (1149, SECURITY),
    (4624, "security-auditing-lookalike"),
    (1102, "Microsoft-Windows-Eventlog"),
    (104, SECURITY),
    (4104, "Microsoft-Windows-WMI"),
    (4110, SECURITY),
    (7045, "Service Control Manager"),
])
def test_unqualified_provider_is_not_focused(event_id, provider):
    assert classify(event_id, provider).category is None


def test_security_provider_match_is_case_insensitive():
    assert classify(4625, SECURITY.lower()).category is Category.REMOTE_ACCESS


def test_usb_raw_and_device_info_flags():
    result = classify(2102, UMDF)
    assert result.usb_raw and result.device_info

    result = classify(3100, "Microsoft-Windows-Kernel-PnP")
    assert result.usb_raw
    assert not result.device_info


def test_process_indicator_flag():
    assert classify(4688, SECURITY).process_indicator
    assert not classify(4688, SECURITY).focused
    assert classify(4104, "Microsoft-Windows-PowerShell").process_indicator


def test_usb_provider_markers():
    assert is_usb_provider("Microsoft-Windows-StorPort")
    assert is_usb_provider("microsoft-windows-userpnp")
    assert not is_usb_provider("")
    assert not is_usb_provider("Microsoft-Windows-Winlogon")
