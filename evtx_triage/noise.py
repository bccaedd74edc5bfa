"""EVTX Triage - Noise suppression for high-volume benign events"""

from typing import Optional

from . import patterns
from .models import EventRecord, NoiseVerdict


def _field(record: EventRecord, name: str) -> Optional[str]:
    value = record.fields.get(name) if record.fields is not None else None
    if value is None:
        return None
    return str(value).strip()


def is_interactive_user(account: Optional[str]) -> bool:
    """True for a real account name, False for machine and service identities"""
    if not account:
        return False
    if account.endswith(patterns.MACHINE_ACCOUNT_SUFFIX):
        return False
    upper = account.upper()
    if upper in patterns.IGNORED_ACCOUNT_NAMES:
        return False
    return not upper.startswith(patterns.IGNORED_ACCOUNT_PREFIXES)


def check_logon(record: EventRecord) -> NoiseVerdict:
    """4624: service logons are noise; the target account is reported either way"""
    account = _field(record, "TargetUserName")
    user = account if is_interactive_user(account) else None
    is_noise = _field(record, "LogonType") == patterns.SERVICE_LOGON_TYPE
    return NoiseVerdict(is_noise=is_noise, user=user)


def check_special_privileges(record: EventRecord) -> NoiseVerdict:
    """4672 assigned to LocalSystem is noise"""
    sid = _field(record, "SubjectUserSid")
    return NoiseVerdict(is_noise=sid is not None and sid.upper() == patterns.LOCAL_SYSTEM_SID)


def check_noise(record: EventRecord) -> NoiseVerdict:
    if record.event_id == patterns.SUCCESSFUL_LOGON_ID:
        return check_logon(record)
    if record.event_id == patterns.SPECIAL_PRIVILEGES_ID:
        return check_special_privileges(record)
    return NoiseVerdict()
