"""Shared fixtures: an in-memory provider and record helpers."""

from __future__ import annotations

from dataclasses import replace

import pytest

from zonectl.capabilities import Capability, CapabilityDescriptor, can, cannot
from zonectl.models import RateLimitError, Record
from zonectl.providers.base import DNSProvider, is_parking_placeholder
from zonectl.retry import RetryPolicy

INCREMENTAL = CapabilityDescriptor(
    name="MEMORY",
    features={
        Capability.CAN_CONCUR: can(),
        Capability.CAN_USE_CAA: can(),
        Capability.CAN_USE_SRV: can(),
    },
    incremental=True,
)

BUNDLE_ONLY = CapabilityDescriptor(
    name="BUNDLED",
    features={
        Capability.CAN_CONCUR: cannot(),
        Capability.CAN_USE_CAA: can(),
        Capability.CAN_USE_SRV: cannot("The API cannot read or set SRV records"),
    },
    incremental=False,
    registrar=True,
    registrar_controls_apex_ns=True,
    custom_record_types=frozenset({"URL", "URL301", "FRAME"}),
)


class MemoryProvider(DNSProvider):
    """Keeps zones in a dict and records every call."""

    capabilities = INCREMENTAL

    def __init__(self, zones=None, nameservers=None):
        self.zones: dict[str, list[Record]] = {origin: list(records) for origin, records in (zones or {}).items()}
        self.nameservers: dict[str, list[str]] = dict(nameservers or {})
        self.calls: list[tuple] = []
        self.failures: list[Exception] = []

    def _maybe_fail(self):
        if self.failures:
            raise self.failures.pop(0)

    def fetch_records(self, origin):
        self.calls.append(("fetch", origin))
        self._maybe_fail()
        return list(self.zones.get(origin, []))

    def apply_incremental(self, origin, creates, deletes, modifies):
        self.calls.append(("incremental", origin, list(creates), list(deletes), list(modifies)))
        self._maybe_fail()
        zone = self.zones.setdefault(origin, [])
        for record in deletes:
            zone.remove(record)
        for change in modifies:
            zone.remove(change.before)
            zone.append(change.after)
        zone.extend(creates)

    def apply_full_replace(self, origin, records):
        self.calls.append(("replace", origin, list(records)))
        self._maybe_fail()
        self.zones[origin] = list(records)

    def fetch_nameservers(self, domain):
        self.calls.append(("fetch_ns", domain))
        self._maybe_fail()
        return list(self.nameservers.get(domain, []))

    def set_nameservers(self, domain, nameservers):
        self.calls.append(("set_ns", domain, list(nameservers)))
        self._maybe_fail()
        self.nameservers[domain] = list(nameservers)


class BundledProvider(MemoryProvider):
    """Registrar-style provider that only accepts whole-zone uploads."""

    capabilities = BUNDLE_ONLY
    default_ttl = 1800
    default_nameservers = ("dns1.registrar-servers.com", "dns2.registrar-servers.com")

    def apply_incremental(self, origin, creates, deletes, modifies):
        raise AssertionError("bundle-only provider received an incremental call")

    def is_placeholder_zone(self, records):
        return is_parking_placeholder(records)

    def is_rate_limited(self, exc):
        return "unexpected status code from api: 405" in str(exc)


def a(label, target, ttl=300):
    return Record(label=label, type="A", target=target, ttl=ttl)


def with_ttl(record, ttl):
    return replace(record, ttl=ttl)


@pytest.fixture
def memory_provider():
    return MemoryProvider()


@pytest.fixture
def bundled_provider():
    return BundledProvider()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def retry(sleeps):
    return RetryPolicy(max_attempts=3, interval=5.0, sleep=sleeps.append)


@pytest.fixture
def rate_limit():
    return RateLimitError("slow down")
