"""Core data models used by zonectl."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, Sequence


@dataclass(frozen=True)
class Record:
    """Canonical representation of a DNS resource record relative to its zone."""

    label: str
    type: str
    target: str
    ttl: int = 0
    mx_preference: int | None = None
    srv_priority: int | None = None
    srv_weight: int | None = None
    srv_port: int | None = None
    caa_flag: int | None = None
    caa_tag: str | None = None

    def sort_key(self) -> tuple[str, str, str]:
        """Return the key used for deterministic ordering."""
        return (self.label, self.type, self.target)

    def ancillary(self) -> tuple:
        """Return the type-specific fields that accompany the target."""
        return (
            self.mx_preference,
            self.srv_priority,
            self.srv_weight,
            self.srv_port,
            self.caa_flag,
            self.caa_tag,
        )

    def combined(self) -> str:
        """Return the target rendered with its type-specific fields."""
        from .rtypes import serialize

        return serialize(self)

    def __str__(self) -> str:
        return f"{self.label} {self.type} {self.combined()} ttl={self.ttl}"


@dataclass
class ZoneDeclaration:
    """Desired state of one zone as handed over by configuration."""

    origin: str
    records: list[Record] = field(default_factory=list)
    nameservers: list[str] = field(default_factory=list)
    default_ttl: int | None = None
    ignore: list[str] = field(default_factory=list)

    def iter_records(self) -> Iterator[Record]:
        """Yield all desired records."""
        yield from self.records


@dataclass(frozen=True)
class RecordChange:
    """A record whose target is kept but whose TTL or fields change."""

    before: Record
    after: Record

    def __str__(self) -> str:
        before, after = self.before, self.after
        return f"{after.label} {after.type} {before.combined()} ttl={before.ttl} -> {after.combined()} ttl={after.ttl}"


@dataclass(frozen=True)
class Notice:
    """Informational message about a declared change that will not be made."""

    message: str
    record: Record | None = None


@dataclass
class ChangeSet:
    """Classification of differences between desired and actual records."""

    to_create: list[Record] = field(default_factory=list)
    to_delete: list[Record] = field(default_factory=list)
    to_modify: list[RecordChange] = field(default_factory=list)
    to_report: list[Notice] = field(default_factory=list)
    desired: list[Record] = field(default_factory=list)
    preserved: list[Record] = field(default_factory=list)

    def has_changes(self) -> bool:
        """Return True when the change set holds anything executable."""
        return bool(self.to_create or self.to_delete or self.to_modify)

    def total(self) -> int:
        """Return the number of executable change entries."""
        return len(self.to_create) + len(self.to_delete) + len(self.to_modify)

    def describe(self) -> list[str]:
        """Return one audit line per change, creates first."""
        lines = [f"+ CREATE {record}" for record in self.to_create]
        lines.extend(f"- DELETE {record}" for record in self.to_delete)
        lines.extend(f"~ MODIFY {change}" for change in self.to_modify)
        return lines


@dataclass(frozen=True)
class Correction:
    """A planned change unit; report-only corrections carry no action."""

    description: str
    action: Callable[[], object] | None = None

    @property
    def is_report_only(self) -> bool:
        return self.action is None


@dataclass(frozen=True)
class CorrectionResult:
    """Outcome of running a single correction."""

    correction: Correction
    executed: bool
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def count_executable(corrections: Sequence[Correction]) -> int:
    """Return how many corrections carry an action."""
    return sum(1 for correction in corrections if not correction.is_report_only)


class ZoneCtlError(Exception):
    """Base exception for zonectl."""


class ConfigurationError(ZoneCtlError):
    """Raised for invalid settings or declarations; fatal before network calls."""


class RecordValidationError(ConfigurationError):
    """Raised when a record target is malformed for its type."""


class FetchError(ZoneCtlError):
    """Raised when the actual state of a zone cannot be retrieved."""


class RateLimitError(ZoneCtlError):
    """Raised by adapters when the backend asks the client to slow down."""


class ApplyError(ZoneCtlError):
    """Raised when a correction's action fails."""
