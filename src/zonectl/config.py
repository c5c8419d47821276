"""Environment-driven configuration loader."""

from __future__ import annotations

import base64
import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .models import ConfigurationError

PROVIDER_NAMES = {"BIND", "ZONEFILE"}


@dataclass(frozen=True)
class TsigKey:
    """Holds TSIG credentials used for AXFR and dynamic updates."""

    name: str
    algorithm: str
    secret: str


@dataclass(frozen=True)
class AppConfig:
    """Application-wide configuration values."""

    provider: str
    bind_server: str
    bind_port: int
    bind_view: str
    tsig: TsigKey | None
    zone_output_dir: Path
    templates_dir: Path
    named_checkzone_bin: str
    rndc_bin: str
    rndc_server: str
    serial_strategy: str
    default_record_ttl: int
    log_level: str
    axfr_timeout: float
    retry_max_attempts: int
    retry_interval: float
    max_workers: int


KEYFILE_PATTERN = re.compile(
    r'key\s+"(?P<name>[^"]+)"\s*\{'
    r"(?P<body>.*?)"
    r"\}",
    re.IGNORECASE | re.DOTALL,
)
ALGORITHM_PATTERN = re.compile(
    r"algorithm\s+(?P<algorithm>[\w-]+)\s*;",
    re.IGNORECASE,
)
SECRET_PATTERN = re.compile(
    r'secret\s+"(?P<secret>[^"]+)"\s*;',
    re.IGNORECASE,
)


def _parse_keyfile(encoded: str, overrides: dict[str, str | None]) -> TsigKey:
    """Decode and parse a base64-encoded BIND keyfile."""
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except Exception as exc:  # noqa: BLE001
        raise ConfigurationError("Failed to decode TSIG key file base64 payload.") from exc

    match = KEYFILE_PATTERN.search(decoded)
    if not match:
        raise ConfigurationError("TSIG key file does not match expected format.")
    body = match.group("body")
    name = overrides.get("name") or match.group("name")
    algo_match = ALGORITHM_PATTERN.search(body)
    secret_match = SECRET_PATTERN.search(body)
    algorithm = overrides.get("algorithm") or (algo_match.group("algorithm") if algo_match else None)
    secret = overrides.get("secret") or (secret_match.group("secret") if secret_match else None)

    if not all([name, algorithm, secret]):
        raise ConfigurationError("TSIG key file missing name, algorithm, or secret.")

    return TsigKey(name=name, algorithm=algorithm, secret=secret)


def _load_tsig() -> TsigKey | None:
    """Build TSIG credentials from a keyfile or from individual variables."""
    overrides = {
        "name": os.getenv("BIND_TSIG_NAME"),
        "algorithm": os.getenv("BIND_TSIG_ALGORITHM"),
        "secret": os.getenv("BIND_TSIG_SECRET"),
    }
    serialized_key = os.getenv("BIND_TSIG_KEYFILE_B64", "")
    if serialized_key:
        return _parse_keyfile(serialized_key, overrides)
    if overrides["name"] and overrides["secret"]:
        return TsigKey(
            name=overrides["name"],
            algorithm=overrides["algorithm"] or "hmac-sha256",
            secret=overrides["secret"],
        )
    return None


def _env_number(name: str, default: str, kind: type = int) -> int | float:
    """Read a numeric environment variable."""
    raw = os.getenv(name, default)
    try:
        value = kind(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative.")
    return value


def load_config() -> AppConfig:
    """Load configuration values from the environment (and .env)."""
    load_dotenv()
    provider = os.getenv("ZONECTL_PROVIDER", "BIND").upper()
    if provider not in PROVIDER_NAMES:
        raise ConfigurationError(f"ZONECTL_PROVIDER must be one of {', '.join(sorted(PROVIDER_NAMES))}.")

    tsig = _load_tsig()
    if provider == "BIND" and tsig is None:
        raise ConfigurationError("BIND provider requires BIND_TSIG_KEYFILE_B64 or BIND_TSIG_NAME/BIND_TSIG_SECRET.")

    serial_strategy = os.getenv("SERIAL_STRATEGY", "date").lower()
    if serial_strategy not in {"date", "epoch"}:
        raise ConfigurationError("SERIAL_STRATEGY must be either 'date' or 'epoch'.")

    retry_max_attempts = int(_env_number("RETRY_MAX_ATTEMPTS", "23"))
    if retry_max_attempts < 1:
        raise ConfigurationError("RETRY_MAX_ATTEMPTS must be at least 1.")

    bind_server = os.getenv("BIND_SERVER", "127.0.0.1")
    return AppConfig(
        provider=provider,
        bind_server=bind_server,
        bind_port=int(_env_number("BIND_PORT", "53")),
        bind_view=os.getenv("BIND_VIEW", "default"),
        tsig=tsig,
        zone_output_dir=Path(os.getenv("ZONE_OUTPUT_DIR", "zones")).resolve(),
        templates_dir=Path(os.getenv("TEMPLATES_DIR", "templates")).resolve(),
        named_checkzone_bin=os.getenv("NAMED_CHECKZONE_BIN", ""),
        rndc_bin=os.getenv("RNDC_BIN", ""),
        rndc_server=os.getenv("RNDC_SERVER", bind_server),
        serial_strategy=serial_strategy,
        default_record_ttl=int(_env_number("DEFAULT_RECORD_TTL", "3600")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        axfr_timeout=float(_env_number("AXFR_TIMEOUT", "10", float)),
        retry_max_attempts=retry_max_attempts,
        retry_interval=float(_env_number("RETRY_INTERVAL", "5", float)),
        max_workers=max(1, int(_env_number("MAX_WORKERS", "4"))),
    )
