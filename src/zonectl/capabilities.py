"""Static per-provider capability descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping

from .models import ConfigurationError, Record

BASE_RECORD_TYPES = frozenset({"A", "AAAA", "CNAME", "MX", "NS", "TXT"})


class Capability(Enum):
    """Closed set of things a provider may or may not support."""

    CAN_GET_ZONES = "CAN_GET_ZONES"
    CAN_CONCUR = "CAN_CONCUR"
    CAN_USE_ALIAS = "CAN_USE_ALIAS"
    CAN_USE_CAA = "CAN_USE_CAA"
    CAN_USE_LOC = "CAN_USE_LOC"
    CAN_USE_PTR = "CAN_USE_PTR"
    CAN_USE_SRV = "CAN_USE_SRV"
    CAN_USE_TLSA = "CAN_USE_TLSA"
    DOC_CREATE_DOMAINS = "DOC_CREATE_DOMAINS"
    DOC_DUAL_HOST = "DOC_DUAL_HOST"


class SupportState(Enum):
    """Tri-state support level."""

    CAN = "can"
    CANNOT = "cannot"
    UNIMPLEMENTED = "unimplemented"


@dataclass(frozen=True)
class Support:
    """Support level with an optional free-text caveat."""

    state: SupportState
    caveat: str = ""

    @property
    def is_supported(self) -> bool:
        return self.state is SupportState.CAN

    def __str__(self) -> str:
        if self.caveat:
            return f"{self.state.value} ({self.caveat})"
        return self.state.value


def can(caveat: str = "") -> Support:
    return Support(SupportState.CAN, caveat)


def cannot(caveat: str = "") -> Support:
    return Support(SupportState.CANNOT, caveat)


def unimplemented(caveat: str = "") -> Support:
    return Support(SupportState.UNIMPLEMENTED, caveat)


@dataclass(frozen=True)
class CapabilityDescriptor:
    """What a provider can do; unlisted capabilities default to ``cannot``."""

    name: str
    features: Mapping[Capability, Support] = field(default_factory=dict)
    incremental: bool = True
    registrar: bool = False
    registrar_controls_apex_ns: bool = False
    custom_record_types: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "features", MappingProxyType(dict(self.features)))

    def support(self, capability: Capability) -> Support:
        """Return the declared support for a capability."""
        return self.features.get(capability, cannot())

    @property
    def concurrent(self) -> bool:
        """Return True when zones may be reconciled in parallel."""
        return self.support(Capability.CAN_CONCUR).is_supported

    def supports_record_type(self, rtype: str) -> Support:
        """Return the support level for a record type."""
        canonical = rtype.upper()
        if canonical in BASE_RECORD_TYPES or canonical in self.custom_record_types:
            return can()
        try:
            capability = Capability(f"CAN_USE_{canonical}")
        except ValueError:
            return cannot(f"{canonical} is not a record type this provider handles")
        return self.support(capability)


def validate_record_types(records: Iterable[Record], descriptor: CapabilityDescriptor) -> None:
    """Raise ConfigurationError if any record uses a type the provider cannot handle."""
    problems: dict[str, Support] = {}
    for record in records:
        rtype = record.type.upper()
        if rtype in problems:
            continue
        support = descriptor.supports_record_type(rtype)
        if not support.is_supported:
            problems[rtype] = support
    if problems:
        details = "; ".join(f"{rtype}: {support}" for rtype, support in sorted(problems.items()))
        raise ConfigurationError(f"Provider {descriptor.name} does not support record types {details}")
