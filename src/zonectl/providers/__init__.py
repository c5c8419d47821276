"""Provider table and construction from configuration."""

from __future__ import annotations

from typing import Mapping

from ..capabilities import CapabilityDescriptor
from ..config import AppConfig
from ..models import ConfigurationError
from .base import DNSProvider
from .bind import BindProvider
from .zonefile import ZoneFileProvider

PROVIDER_TYPES: dict[str, type[DNSProvider]] = {
    "BIND": BindProvider,
    "ZONEFILE": ZoneFileProvider,
}


def validate_provider_types(types: Mapping[str, type[DNSProvider]] = PROVIDER_TYPES) -> None:
    """Ensure every provider declares a capability descriptor matching its name."""
    for name, provider_type in types.items():
        descriptor = getattr(provider_type, "capabilities", None)
        if not isinstance(descriptor, CapabilityDescriptor):
            raise ConfigurationError(f"Provider {name} does not declare its capabilities.")
        if descriptor.name != name:
            raise ConfigurationError(f"Provider {name} declares capabilities for {descriptor.name}.")


def build_provider(config: AppConfig) -> DNSProvider:
    """Construct the configured provider."""
    validate_provider_types()
    if config.provider == "BIND":
        if config.tsig is None:
            raise ConfigurationError("BIND provider requires TSIG credentials.")
        return BindProvider(
            server=config.bind_server,
            port=config.bind_port,
            tsig=config.tsig,
            timeout=config.axfr_timeout,
            default_ttl=config.default_record_ttl,
        )
    if config.provider == "ZONEFILE":
        return ZoneFileProvider(
            output_dir=config.zone_output_dir,
            templates_dir=config.templates_dir,
            named_checkzone_bin=config.named_checkzone_bin,
            rndc_bin=config.rndc_bin,
            rndc_server=config.rndc_server,
            bind_view=config.bind_view,
            serial_strategy=config.serial_strategy,
            default_ttl=config.default_record_ttl,
        )
    raise ConfigurationError(f"Unknown provider {config.provider}.")
