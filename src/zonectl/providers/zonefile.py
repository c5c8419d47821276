"""Zone-file provider: renders the whole zone through Jinja2 on every change."""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import dns.exception
import dns.rdatatype
import dns.zone
from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, StrictUndefined, TemplateError

from ..capabilities import Capability, CapabilityDescriptor, can, cannot
from ..models import ApplyError, FetchError, Record
from ..rtypes import ensure_absolute, presentation
from .base import DNSProvider
from .bind import zone_to_records

LOG = logging.getLogger("zonectl.providers.zonefile")

DEFAULT_TEMPLATE = """\
$ORIGIN {{ origin }}
$TTL {{ default_ttl }}
@ IN SOA {{ soa.primary_ns }} {{ soa.admin_email }} (
    {{ soa.serial }} ; serial
    {{ soa.refresh }} ; refresh
    {{ soa.retry }} ; retry
    {{ soa.expire }} ; expire
    {{ soa.minimum }} ; minimum
)
{% for record in records %}
{{ record.owner }} {{ record.ttl }} IN {{ record.type }} {{ record.value }}
{% endfor %}
"""


@dataclass(frozen=True)
class SOAConfig:
    """Values required to render an SOA record."""

    primary_ns: str
    admin_email: str
    serial: int
    refresh: int = 3600
    retry: int = 600
    expire: int = 604800
    minimum: int = 86400


def suggest_serial(strategy: str, current_serial: int | None) -> int:
    """Return a serial number that satisfies the chosen strategy."""
    if strategy == "epoch":
        candidate = int(time.time())
    else:
        candidate = int(datetime.now(tz=timezone.utc).strftime("%Y%m%d00"))
    if current_serial is None:
        return candidate
    while candidate <= current_serial:
        candidate += 1
    return candidate


class ZoneFileProvider(DNSProvider):
    """Writes ``<zone>.zone`` files and optionally reloads BIND.

    The file is always regenerated as a whole, so this provider is bundle-only.
    """

    capabilities = CapabilityDescriptor(
        name="ZONEFILE",
        features={
            Capability.CAN_GET_ZONES: can(),
            Capability.CAN_CONCUR: cannot("rndc reloads share one server"),
            Capability.CAN_USE_CAA: can(),
            Capability.CAN_USE_PTR: can(),
            Capability.CAN_USE_SRV: can(),
            Capability.DOC_CREATE_DOMAINS: can(),
        },
        incremental=False,
    )

    def __init__(
        self,
        output_dir: Path,
        templates_dir: Path | None = None,
        named_checkzone_bin: str = "",
        rndc_bin: str = "",
        rndc_server: str = "127.0.0.1",
        bind_view: str = "default",
        serial_strategy: str = "date",
        default_ttl: int = 3600,
    ):
        """Store paths and tool locations."""
        self.output_dir = Path(output_dir)
        self.templates_dir = templates_dir
        self.named_checkzone_bin = named_checkzone_bin
        self.rndc_bin = rndc_bin
        self.rndc_server = rndc_server
        self.bind_view = bind_view
        self.serial_strategy = serial_strategy
        self.default_ttl = default_ttl

    def zone_path(self, origin: str) -> Path:
        """Return the file a zone is written to."""
        return self.output_dir / f"{origin.rstrip('.').lower()}.zone"

    def _load_zone(self, origin: str) -> dns.zone.Zone | None:
        path = self.zone_path(origin)
        if not path.exists():
            return None
        try:
            return dns.zone.from_file(str(path), origin=ensure_absolute(origin), relativize=False, check_origin=False)
        except (OSError, dns.exception.DNSException) as exc:
            raise FetchError(f"Failed to read zone file {path}: {exc}") from exc

    def fetch_records(self, origin: str) -> list[Record]:
        """Return the records currently in the zone file (empty if absent)."""
        zone = self._load_zone(origin)
        if zone is None:
            LOG.debug("No zone file for %s yet.", origin)
            return []
        return zone_to_records(zone, ensure_absolute(origin))

    def _current_soa(self, origin: str):
        zone = self._load_zone(origin)
        if zone is None:
            return None
        rdataset = zone.get_rdataset(ensure_absolute(origin), dns.rdatatype.SOA)
        if rdataset is None:
            return None
        return rdataset[0]

    def build_soa(self, origin: str) -> SOAConfig:
        """Return the existing SOA values with a serial bumped past the current one."""
        current = self._current_soa(origin)
        if current is None:
            absolute = ensure_absolute(origin)
            return SOAConfig(
                primary_ns=f"ns.{absolute}",
                admin_email=f"hostmaster.{absolute}",
                serial=suggest_serial(self.serial_strategy, None),
            )
        return SOAConfig(
            primary_ns=current.mname.to_text(),
            admin_email=current.rname.to_text(),
            serial=suggest_serial(self.serial_strategy, int(current.serial)),
            refresh=int(current.refresh),
            retry=int(current.retry),
            expire=int(current.expire),
            minimum=int(current.minimum),
        )

    def render(self, origin: str, records: Sequence[Record], soa: SOAConfig) -> str:
        """Render the zone file text."""
        loaders = [DictLoader({"zone.j2": DEFAULT_TEMPLATE})]
        if self.templates_dir is not None:
            loaders.insert(0, FileSystemLoader(str(self.templates_dir)))
        env = Environment(
            loader=ChoiceLoader(loaders),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        template = env.get_template("zone.j2")
        rows = [
            {"owner": record.label, "ttl": record.ttl or self.default_ttl, "type": record.type, "value": presentation(record)}
            for record in records
        ]
        text = template.render(
            origin=ensure_absolute(origin),
            default_ttl=self.default_ttl,
            soa=asdict(soa),
            records=rows,
        )
        return text.strip() + "\n"

    def apply_full_replace(self, origin: str, records: Sequence[Record]) -> None:
        """Rewrite the zone file, validate it and reload the zone."""
        try:
            text = self.render(origin, records, self.build_soa(origin))
        except TemplateError as exc:
            raise ApplyError(f"Failed to render zone {origin}: {exc}") from exc
        path = self.zone_path(origin)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        LOG.info("Wrote zone file to %s", path)
        zone = origin.rstrip(".")
        if self.named_checkzone_bin:
            self._run([self.named_checkzone_bin, zone, str(path)])
        if self.rndc_bin:
            self._run([self.rndc_bin, "-s", self.rndc_server, "reload", zone, self.bind_view])

    def _run(self, cmd: list[str]) -> None:
        LOG.info("Running %s", " ".join(cmd))
        try:
            subprocess.run(cmd, check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise ApplyError(f"{cmd[0]} failed: {exc}") from exc
