"""EVTX Triage - Event taxonomy"""

from dataclasses import dataclass, field, replace
from functools import cached_property
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from . import patterns
from .models import Category


def _default_category_ids() -> Mapping[Category, FrozenSet[int]]:
    return MappingProxyType({
        Category.FILE_ACCESS: patterns.FILE_ACCESS_IDS,
        Category.USB: patterns.USB_IDS,
        Category.NETWORK: patterns.NETWORK_IDS,
        Category.REMOTE_ACCESS: patterns.REMOTE_ACCESS_IDS,
        Category.PRIVILEGE_ESCALATION: patterns.PRIV_ESC_IDS,
        Category.ANTI_FORENSICS: patterns.ANTI_FORENSICS_IDS,
        Category.POWERSHELL: patterns.POWERSHELL_IDS,
        Category.EMAIL_TRUST: patterns.EMAIL_TRUST_IDS,
    })


@dataclass(frozen=True)
class Taxonomy:
    """Immutable lookup tables shared by the classifier, correlator and renderer.

    Built once per run (see ``config.build_taxonomy``) and passed by reference.
    """
    category_ids: Mapping[Category, FrozenSet[int]] = field(default_factory=_default_category_ids)
    device_info_ids: FrozenSet[int] = patterns.DEVICE_INFO_IDS
    descriptions: Mapping[int, str] = field(
        default_factory=lambda: MappingProxyType(dict(patterns.EVENT_DESCRIPTIONS))
    )
    cloud_process_names: Tuple[str, ...] = patterns.CLOUD_PROCESS_NAMES
    email_client_process_names: Tuple[str, ...] = patterns.EMAIL_CLIENT_PROCESS_NAMES
    security_task_names: Mapping[int, str] = field(
        default_factory=lambda: MappingProxyType(dict(patterns.SECURITY_TASK_NAMES))
    )

    @cached_property
    def interesting_ids(self) -> FrozenSet[int]:
        """Identifiers whose description is worth formatting"""
        ids = set(self.device_info_ids)
        for members in self.category_ids.values():
            ids.update(members)
        ids.add(patterns.PROCESS_CREATION_ID)
        return frozenset(ids)

    def categories_for(self, event_id: int) -> Tuple[Category, ...]:
        return tuple(cat for cat in Category if event_id in self.category_ids.get(cat, ()))

    def describe(self, event_id: int) -> str:
        return self.descriptions.get(event_id, patterns.UNKNOWN_DESCRIPTION)

    def task_name(self, task: Optional[int]) -> Optional[str]:
        if task is None:
            return None
        return self.security_task_names.get(task)

    def with_overrides(self, cloud_process_names=None, email_client_process_names=None,
                       descriptions=None) -> "Taxonomy":
        changes = {}
        if cloud_process_names is not None:
            changes['cloud_process_names'] = tuple(cloud_process_names)
        if email_client_process_names is not None:
            changes['email_client_process_names'] = tuple(email_client_process_names)
        if descriptions:
            merged = dict(self.descriptions)
            merged.update(descriptions)
            changes['descriptions'] = MappingProxyType(merged)
        return replace(self, **changes)


DEFAULT_TAXONOMY = Taxonomy()
