"""High-level orchestration for zonectl."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Sequence

from .capabilities import validate_record_types
from .diffing import diff_records
from .executor import execute_corrections
from .models import (
    ChangeSet,
    ConfigurationError,
    Correction,
    CorrectionResult,
    FetchError,
    Record,
    ZoneCtlError,
    ZoneDeclaration,
    count_executable,
)
from .planner import plan_corrections
from .providers.base import DNSProvider
from .registrar import plan_nameserver_corrections
from .retry import RetryPolicy
from .rtypes import ensure_absolute, normalize_records

LOG = logging.getLogger("zonectl")


@dataclass
class PlanResult:
    """Holds everything needed to apply a change."""

    declaration: ZoneDeclaration
    current: list[Record]
    change_set: ChangeSet
    corrections: list[Correction]
    registrar_corrections: list[Correction] = field(default_factory=list)

    @property
    def all_corrections(self) -> list[Correction]:
        return [*self.corrections, *self.registrar_corrections]

    def has_changes(self) -> bool:
        """Return True when any correction carries an action."""
        return count_executable(self.all_corrections) > 0


@dataclass
class ZoneOutcome:
    """Result of one zone's pass inside a multi-zone run."""

    origin: str
    plan: PlanResult | None = None
    results: list[CorrectionResult] = field(default_factory=list)
    error: ZoneCtlError | None = None

    @property
    def success(self) -> bool:
        return self.error is None and all(result.success for result in self.results)


class ZoneController:
    """Coordinates plan/apply operations against one provider."""

    def __init__(self, provider: DNSProvider, retry: RetryPolicy | None = None, max_workers: int = 4):
        """Bind the provider and the retry policy used for all of its calls."""
        self.provider = provider
        self.retry = (retry or RetryPolicy()).with_classifier(provider.is_rate_limited)
        self.max_workers = max_workers

    def normalize_declaration(self, declaration: ZoneDeclaration) -> list[Record]:
        """Return canonical desired records, rejecting unsupported types."""
        validate_record_types(declaration.records, self.provider.capabilities)
        default_ttl = declaration.default_ttl or self.provider.default_ttl
        return normalize_records(declaration.records, declaration.origin, default_ttl)

    def fetch_current(self, origin: str) -> list[Record]:
        """Fetch and normalize the provider's current records for a zone."""
        try:
            fetched = self.retry.call(lambda: self.provider.fetch_records(origin))
            return normalize_records(fetched, origin, self.provider.default_ttl)
        except FetchError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise FetchError(f"Failed to fetch records for {origin}: {exc}") from exc

    def plan(self, declaration: ZoneDeclaration) -> PlanResult:
        """Compute the corrections that make the provider match the declaration."""
        origin = ensure_absolute(declaration.origin).lower()
        desired = self.normalize_declaration(declaration)
        current = self.fetch_current(origin)
        change_set = diff_records(
            desired,
            current,
            self.provider.capabilities,
            default_nameservers=self.provider.default_nameservers,
            is_placeholder=self.provider.is_placeholder_zone,
            ignore=declaration.ignore,
        )
        corrections = plan_corrections(origin, change_set, self.provider)
        registrar_corrections: list[Correction] = []
        if declaration.nameservers and self.provider.capabilities.registrar:
            registrar_corrections = plan_nameserver_corrections(
                origin, declaration.nameservers, self.provider, self.retry
            )
        LOG.info(
            "Planned %s for %s: %s corrections (%s report-only)",
            self.provider.name,
            origin,
            count_executable(corrections) + len(registrar_corrections),
            len(corrections) - count_executable(corrections),
        )
        return PlanResult(
            declaration=declaration,
            current=current,
            change_set=change_set,
            corrections=corrections,
            registrar_corrections=registrar_corrections,
        )

    def apply(self, plan_result: PlanResult) -> list[CorrectionResult]:
        """Execute a plan's corrections in order."""
        results = execute_corrections(plan_result.all_corrections, self.retry)
        if plan_result.has_changes():
            LOG.info("Apply complete for %s", plan_result.declaration.origin)
        else:
            LOG.info("No changes detected for %s; nothing to apply.", plan_result.declaration.origin)
        return results

    def _run_zone(self, declaration: ZoneDeclaration, apply: bool) -> ZoneOutcome:
        outcome = ZoneOutcome(origin=declaration.origin)
        try:
            outcome.plan = self.plan(declaration)
            if apply:
                outcome.results = self.apply(outcome.plan)
        except ZoneCtlError as exc:
            LOG.error("Zone %s failed: %s", declaration.origin, exc)
            outcome.error = exc
        return outcome

    def reconcile_zones(self, declarations: Sequence[ZoneDeclaration], apply: bool = False) -> list[ZoneOutcome]:
        """Plan (and optionally apply) several zones, in parallel when the provider allows it."""
        for declaration in declarations:
            try:
                self.normalize_declaration(declaration)
            except ConfigurationError as exc:
                raise ConfigurationError(f"{declaration.origin}: {exc}") from exc

        if self.provider.capabilities.concurrent and len(declarations) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                return list(pool.map(lambda declaration: self._run_zone(declaration, apply), declarations))
        return [self._run_zone(declaration, apply) for declaration in declarations]


def configure_logging(level: str) -> None:
    """Configure logging output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
