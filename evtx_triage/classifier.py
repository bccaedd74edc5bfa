"""EVTX Triage - Category classification.

The same numeric identifier is reused by unrelated providers, so every
category check pairs identifier membership with a provider qualifier.
"""

from typing import Iterable, Optional

from . import patterns
from .models import Category, Classification
from .taxonomy import DEFAULT_TAXONOMY, Taxonomy


def _contains_any(text: str, markers: Iterable[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(marker.lower() in lowered for marker in markers)


def _is_security_auditing(provider: str) -> bool:
    return provider.lower() == patterns.SECURITY_AUDITING_PROVIDER.lower()


def is_usb_provider(provider: str) -> bool:
    return _contains_any(provider, patterns.USB_PROVIDER_MARKERS)


def _provider_qualifies(category: Category, event_id: int, provider: str) -> bool:
    if category is Category.USB:
        return is_usb_provider(provider)
    if category is Category.REMOTE_ACCESS and event_id == patterns.RDP_AUTH_ID:
        return _contains_any(provider, patterns.RDP_PROVIDER_MARKERS)
    if category is Category.ANTI_FORENSICS:
        if event_id == patterns.SECURITY_LOG_CLEARED_ID:
            return _is_security_auditing(provider)
        if event_id == patterns.SYSTEM_LOG_CLEARED_ID:
            return provider.lower() == patterns.EVENTLOG_PROVIDER.lower()
        return False
    if category is Category.POWERSHELL:
        return _contains_any(provider, patterns.POWERSHELL_PROVIDER_MARKERS)
    if category is Category.EMAIL_TRUST:
        return _contains_any(provider, patterns.EMAIL_TRUST_PROVIDER_MARKERS)
    return _is_security_auditing(provider)


def category_for(event_id: int, provider: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> Optional[Category]:
    """First category, in report order, whose identifier set and provider rule both match"""
    provider = provider or ""
    for category in taxonomy.categories_for(event_id):
        if _provider_qualifies(category, event_id, provider):
            return category
    return None


def classify(event_id: int, provider: str, taxonomy: Taxonomy = DEFAULT_TAXONOMY) -> Classification:
    provider = provider or ""
    category = category_for(event_id, provider, taxonomy)
    usb_provider = is_usb_provider(provider)
    return Classification(
        category=category,
        usb_raw=category is Category.USB,
        device_info=event_id in taxonomy.device_info_ids and usb_provider,
        process_indicator=event_id in (patterns.PROCESS_CREATION_ID, patterns.SCRIPT_BLOCK_ID),
    )
