"""BIND provider: AXFR for reads, RFC 2136 dynamic updates for writes."""

from __future__ import annotations

import logging
from typing import Sequence

import dns.query
import dns.rcode
import dns.rdatatype
import dns.tsigkeyring
import dns.update
import dns.zone

from ..capabilities import Capability, CapabilityDescriptor, can, cannot, unimplemented
from ..config import TsigKey
from ..models import ApplyError, FetchError, Record, RecordChange
from ..rtypes import decode_txt, ensure_absolute, parse, presentation, qualify, relative_label
from .base import DNSProvider

LOG = logging.getLogger("zonectl.providers.bind")


def zone_to_records(zone: dns.zone.Zone, origin: str) -> list[Record]:
    """Convert a dnspython zone into records relative to origin, skipping SOA."""
    records: list[Record] = []
    for name, node in zone.nodes.items():
        label = relative_label(name.to_text(), origin)
        for rdataset in node.rdatasets:
            rtype = dns.rdatatype.to_text(rdataset.rdtype)
            if rtype == "SOA":
                continue
            for rdata in rdataset:
                if rtype == "TXT":
                    records.append(Record(label, rtype, decode_txt(rdata.strings), ttl=rdataset.ttl))
                else:
                    records.append(parse(rtype, label, rdata.to_text(), ttl=rdataset.ttl))
    return records


class BindProvider(DNSProvider):
    """Authoritative BIND server reachable over AXFR and dynamic update."""

    capabilities = CapabilityDescriptor(
        name="BIND",
        features={
            Capability.CAN_GET_ZONES: unimplemented(),
            Capability.CAN_CONCUR: can(),
            Capability.CAN_USE_CAA: can(),
            Capability.CAN_USE_PTR: can(),
            Capability.CAN_USE_SRV: can(),
            Capability.CAN_USE_TLSA: unimplemented(),
            Capability.CAN_USE_ALIAS: cannot("ALIAS is not a standard record type"),
            Capability.DOC_CREATE_DOMAINS: cannot("Zones must already be configured in named.conf"),
            Capability.DOC_DUAL_HOST: can(),
        },
        incremental=True,
    )

    def __init__(self, server: str, port: int, tsig: TsigKey, timeout: float = 10.0, default_ttl: int = 3600):
        """Store connection settings; no network traffic happens here."""
        self.server = server
        self.port = port
        self.tsig = tsig
        self.timeout = timeout
        self.default_ttl = default_ttl
        self.keyring = dns.tsigkeyring.from_text({tsig.name: tsig.secret})

    def fetch_records(self, origin: str) -> list[Record]:
        """Return the current zone records via AXFR."""
        zone_name = ensure_absolute(origin)
        try:
            xfr = dns.query.xfr(
                where=self.server,
                zone=zone_name,
                port=self.port,
                keyring=self.keyring,
                keyname=self.tsig.name,
                relativize=False,
                timeout=self.timeout,
            )
            zone = dns.zone.from_xfr(xfr, relativize=False)
        except Exception as exc:  # noqa: BLE001
            raise FetchError(f"AXFR failed for zone {zone_name}: {exc}") from exc
        return zone_to_records(zone, zone_name)

    def apply_incremental(
        self,
        origin: str,
        creates: Sequence[Record],
        deletes: Sequence[Record],
        modifies: Sequence[RecordChange],
    ) -> None:
        """Send one dynamic update carrying the given changes."""
        update = dns.update.Update(
            ensure_absolute(origin),
            keyring=self.keyring,
            keyname=self.tsig.name,
            keyalgorithm=self.tsig.algorithm,
        )
        for record in deletes:
            update.delete(qualify(record.label, origin), record.type, presentation(record))
        for change in modifies:
            before, after = change.before, change.after
            update.delete(qualify(before.label, origin), before.type, presentation(before))
            update.add(qualify(after.label, origin), after.ttl, after.type, presentation(after))
        for record in creates:
            update.add(qualify(record.label, origin), record.ttl, record.type, presentation(record))

        LOG.debug(
            "Sending dynamic update for %s: %s additions, %s removals, %s modifications",
            origin,
            len(creates),
            len(deletes),
            len(modifies),
        )
        response = dns.query.tcp(update, self.server, port=self.port, timeout=self.timeout)
        rcode = response.rcode()
        if rcode != dns.rcode.NOERROR:
            raise ApplyError(f"Dynamic update failed with rcode {dns.rcode.to_text(rcode)}")
