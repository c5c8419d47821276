"""Turn a change set into executable corrections."""

from __future__ import annotations

from functools import partial

from .models import ChangeSet, Correction, Notice
from .providers.base import DNSProvider


def report_corrections(notices: list[Notice]) -> list[Correction]:
    """Wrap notices as corrections without an action."""
    return [Correction(description=notice.message) for notice in notices]


def _incremental_corrections(origin: str, change_set: ChangeSet, provider: DNSProvider) -> list[Correction]:
    """One correction per record-level change."""
    corrections: list[Correction] = []
    for record in change_set.to_create:
        corrections.append(
            Correction(
                description=f"+ CREATE {record}",
                action=partial(provider.apply_incremental, origin, [record], [], []),
            )
        )
    for record in change_set.to_delete:
        corrections.append(
            Correction(
                description=f"- DELETE {record}",
                action=partial(provider.apply_incremental, origin, [], [record], []),
            )
        )
    for change in change_set.to_modify:
        corrections.append(
            Correction(
                description=f"~ MODIFY {change}",
                action=partial(provider.apply_incremental, origin, [], [], [change]),
            )
        )
    return corrections


def _bundled_correction(origin: str, change_set: ChangeSet, provider: DNSProvider) -> Correction:
    """A single full-zone replacement listing every change for review.

    Preserved records (ignored labels, registrar-owned apex NS) are sent unchanged.
    """
    records = list(dict.fromkeys([*change_set.desired, *change_set.preserved]))
    header = f"GENERATE_ZONE: {origin.rstrip('.')} ({len(records)} records)"
    description = "\n".join([header, *change_set.describe()])
    return Correction(description=description, action=partial(provider.apply_full_replace, origin, records))


def plan_corrections(origin: str, change_set: ChangeSet, provider: DNSProvider) -> list[Correction]:
    """Return report-only corrections followed by the executable ones."""
    corrections = report_corrections(change_set.to_report)
    if not change_set.has_changes():
        return corrections
    if provider.capabilities.incremental:
        corrections.extend(_incremental_corrections(origin, change_set, provider))
    else:
        corrections.append(_bundled_correction(origin, change_set, provider))
    return corrections
