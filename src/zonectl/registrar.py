"""Nameserver delegation at the registrar."""

from __future__ import annotations

from functools import partial
from typing import Iterable, Sequence

from .models import ConfigurationError, Correction, FetchError
from .providers.base import DNSProvider
from .retry import RetryPolicy


def canonical_nameservers(nameservers: Iterable[str]) -> str:
    """Return a sorted, lower-cased, comma-joined nameserver list."""
    return ",".join(sorted(ns.strip().lower().rstrip(".") for ns in nameservers))


def plan_nameserver_corrections(
    domain: str,
    desired: Sequence[str],
    provider: DNSProvider,
    retry: RetryPolicy,
) -> list[Correction]:
    """Return one correction when the delegated nameservers differ, else none."""
    domain = domain.rstrip(".")
    try:
        current = retry.call(lambda: provider.fetch_nameservers(domain))
    except ConfigurationError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise FetchError(f"Failed to fetch nameservers for {domain}: {exc}") from exc

    found = canonical_nameservers(current)
    wanted = canonical_nameservers(desired)
    if found == wanted:
        return []
    return [
        Correction(
            description=f"Change Nameservers from '{found}' to '{wanted}'",
            action=partial(provider.set_nameservers, domain, wanted.split(",") if wanted else []),
        )
    ]
