"""Diff utilities for DNS zones."""

from __future__ import annotations

import fnmatch
import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, Sequence, Tuple

from .capabilities import CapabilityDescriptor
from .models import ChangeSet, Notice, Record, RecordChange
from .rtypes import APEX, ensure_absolute

LOG = logging.getLogger("zonectl.diffing")

PlaceholderPredicate = Callable[[Sequence[Record]], bool]


def _order(record: Record) -> tuple:
    """Total ordering used for every emitted list."""
    return (*record.sort_key(), record.combined(), record.ttl)


def _is_apex_ns(record: Record) -> bool:
    return record.type == "NS" and record.label == APEX


def _build_value_map(records: Iterable[Record]) -> Dict[Tuple[str, str], list[Record]]:
    """Group records by label/type, dropping exact duplicates."""
    index: Dict[Tuple[str, str], list[Record]] = defaultdict(list)
    for record in dict.fromkeys(records):
        index[(record.label, record.type)].append(record)
    return index


def matches_ignore(record: Record, patterns: Sequence[str]) -> bool:
    """Return True if the record label matches any ignore pattern."""
    lowered = record.label.lower()
    return any(fnmatch.fnmatch(lowered, pattern.lower()) for pattern in patterns)


def filter_apex_ns(
    desired: Iterable[Record],
    descriptor: CapabilityDescriptor,
    default_nameservers: Sequence[str] = (),
) -> tuple[list[Record], list[Notice]]:
    """Drop apex NS records the provider will not let us manage."""
    if not descriptor.registrar_controls_apex_ns:
        return list(desired), []
    defaults = {ensure_absolute(ns).lower() for ns in default_nameservers}
    kept: list[Record] = []
    notices: list[Notice] = []
    for record in desired:
        if not _is_apex_ns(record):
            kept.append(record)
            continue
        if record.target.lower() not in defaults:
            message = f"{record.target} {descriptor.name} does not support changing apex NS records. Skipping."
            notices.append(Notice(message=message, record=record))
        else:
            LOG.debug("Apex NS %s matches provider default; skipping silently.", record.target)
    return kept, notices


def _match_values(
    desired_values: list[Record],
    current_values: list[Record],
) -> tuple[list[Record], list[Record], list[RecordChange]]:
    """Pair up the values of one label/type key."""
    pending_current = sorted(current_values, key=_order)
    unmatched_desired: list[Record] = []
    for record in sorted(desired_values, key=_order):
        if record in pending_current:
            pending_current.remove(record)
        else:
            unmatched_desired.append(record)

    added: list[Record] = []
    modified: list[RecordChange] = []
    for record in unmatched_desired:
        same_target = next((cur for cur in pending_current if cur.target == record.target), None)
        if same_target is None:
            added.append(record)
        else:
            pending_current.remove(same_target)
            modified.append(RecordChange(before=same_target, after=record))

    return added, pending_current, modified


def diff_records(
    desired: Iterable[Record],
    current: Iterable[Record],
    descriptor: CapabilityDescriptor,
    default_nameservers: Sequence[str] = (),
    is_placeholder: PlaceholderPredicate | None = None,
    ignore: Sequence[str] = (),
) -> ChangeSet:
    """Produce a change set turning normalized current records into desired ones."""
    desired_records, notices = filter_apex_ns(desired, descriptor, default_nameservers)
    current_records = list(current)
    preserved = [record for record in current_records if matches_ignore(record, ignore)]
    current_records = [record for record in current_records if not matches_ignore(record, ignore)]
    if descriptor.registrar_controls_apex_ns:
        preserved.extend(record for record in current_records if _is_apex_ns(record))
        current_records = [record for record in current_records if not _is_apex_ns(record)]

    if not desired_records and is_placeholder is not None and current_records and is_placeholder(current_records):
        LOG.debug("Current records match the provider placeholder pattern; treating zone as empty.")
        current_records = []

    desired_map = _build_value_map(desired_records)
    current_map = _build_value_map(current_records)
    change_set = ChangeSet(
        to_report=notices,
        desired=sorted(dict.fromkeys(desired_records), key=_order),
        preserved=sorted(dict.fromkeys(preserved), key=_order),
    )

    for key in sorted(set(desired_map) | set(current_map)):
        added, removed, modified = _match_values(desired_map.get(key, []), current_map.get(key, []))
        change_set.to_create.extend(added)
        change_set.to_delete.extend(removed)
        change_set.to_modify.extend(modified)

    change_set.to_create.sort(key=_order)
    change_set.to_delete.sort(key=_order)
    change_set.to_modify.sort(key=lambda change: _order(change.after))
    return change_set
