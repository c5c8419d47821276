"""Base class for DNS providers.

Every backend adapter inherits from ``DNSProvider`` and declares a static
``CapabilityDescriptor``. Incremental providers implement
``apply_incremental``; bundle-only providers implement ``apply_full_replace``.
Providers with the registrar role implement the nameserver methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Sequence

from ..capabilities import CapabilityDescriptor
from ..models import ConfigurationError, RateLimitError, Record, RecordChange


class DNSProvider(ABC):
    """Abstract backend adapter constructed once per configured account."""

    capabilities: ClassVar[CapabilityDescriptor]
    default_ttl: ClassVar[int] = 300
    default_nameservers: ClassVar[tuple[str, ...]] = ()

    @property
    def name(self) -> str:
        """Return the provider name."""
        return self.capabilities.name

    @abstractmethod
    def fetch_records(self, origin: str) -> list[Record]:
        """Return the current records of a zone, labels relative to origin."""

    def apply_incremental(
        self,
        origin: str,
        creates: Sequence[Record],
        deletes: Sequence[Record],
        modifies: Sequence[RecordChange],
    ) -> None:
        """Apply a small set of record-level changes."""
        raise NotImplementedError(f"{self.name} does not support incremental changes")

    def apply_full_replace(self, origin: str, records: Sequence[Record]) -> None:
        """Replace every record of the zone with the given set."""
        raise NotImplementedError(f"{self.name} does not support full-zone replacement")

    def fetch_nameservers(self, domain: str) -> list[str]:
        """Return the nameservers currently delegated for a domain."""
        raise ConfigurationError(f"{self.name} has no registrar role")

    def set_nameservers(self, domain: str, nameservers: Sequence[str]) -> None:
        """Delegate a domain to the given nameservers."""
        raise ConfigurationError(f"{self.name} has no registrar role")

    def is_placeholder_zone(self, records: Sequence[Record]) -> bool:
        """Return True if the records are defaults the backend injects into empty zones."""
        return False

    def is_rate_limited(self, exc: Exception) -> bool:
        """Return True when an error means the backend is throttling us."""
        return isinstance(exc, RateLimitError)


def is_parking_placeholder(records: Sequence[Record]) -> bool:
    """Match the parking page pair some registrars add to empty zones.

    The pattern is exactly two records: a CNAME pointing at a parking page
    host and a URL redirect. Registrar adapters return it from
    ``is_placeholder_zone``; the BIND and zone-file backends have no such defaults.
    """
    if len(records) != 2:
        return False
    first, second = sorted(records, key=lambda record: record.type)
    return first.type == "CNAME" and "parkingpage" in first.target.lower() and second.type == "URL"
