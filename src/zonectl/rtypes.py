"""Per-type normalization, serialization and validation of DNS records.

Each record type maps to a ``RecordTypeSpec`` in ``RECORD_TYPES``. Adding a
type means adding one entry; unknown types fall back to a verbatim handler.
"""

from __future__ import annotations

import ipaddress
import shlex
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Sequence

from .models import Record, RecordValidationError

APEX = "@"
HOSTNAME_TYPES = {"CNAME", "NS", "PTR", "ALIAS"}
REDIRECT_TYPES = {"URL", "URL301", "FRAME"}
CAA_TAGS = {"issue", "issuewild", "iodef", "issuemail", "issuevmc"}


def ensure_absolute(name: str) -> str:
    """Return a fully qualified name with a trailing dot."""
    stripped = name.strip()
    if stripped in {"", APEX, "."}:
        return "."
    return stripped if stripped.endswith(".") else f"{stripped}."


def relative_label(name: str, origin: str) -> str:
    """Return the owner label relative to the provided origin."""
    lowered = name.strip().lower()
    if lowered in {"", APEX}:
        return APEX
    absolute_origin = ensure_absolute(origin).lower()
    bare_origin = absolute_origin.rstrip(".")
    bare_name = lowered.rstrip(".")
    if bare_name == bare_origin:
        return APEX
    if bare_name.endswith(f".{bare_origin}"):
        return bare_name[: -len(bare_origin) - 1]
    return bare_name if not lowered.endswith(".") else lowered


def qualify(name: str, origin: str) -> str:
    """Return a lower-cased absolute hostname, qualifying relative names with origin."""
    cleaned = name.strip().lower()
    if cleaned in {"", APEX}:
        return ensure_absolute(origin).lower()
    if cleaned.endswith("."):
        return cleaned
    return f"{cleaned}.{ensure_absolute(origin).lower()}"


def _check_uint(value: int | None, field_name: str, limit: int, rtype: str) -> None:
    """Reject missing or out-of-range numeric fields."""
    if value is None:
        raise RecordValidationError(f"{rtype} record requires {field_name}.")
    if not 0 <= value <= limit:
        raise RecordValidationError(f"{rtype} {field_name} {value} is out of range 0-{limit}.")


def _validate_ipv4(record: Record) -> None:
    try:
        ipaddress.IPv4Address(record.target.strip())
    except ValueError as exc:
        raise RecordValidationError(f"Invalid IPv4 address {record.target!r} for {record.label}.") from exc


def _validate_ipv6(record: Record) -> None:
    try:
        ipaddress.IPv6Address(record.target.strip())
    except ValueError as exc:
        raise RecordValidationError(f"Invalid IPv6 address {record.target!r} for {record.label}.") from exc


def _validate_hostname(record: Record) -> None:
    target = record.target.strip()
    if not target or any(char.isspace() for char in target):
        raise RecordValidationError(f"Invalid {record.type} target {record.target!r} for {record.label}.")
    if len(target.rstrip(".")) > 253:
        raise RecordValidationError(f"{record.type} target for {record.label} is too long.")


def _validate_mx(record: Record) -> None:
    _check_uint(record.mx_preference, "preference", 65535, "MX")
    _validate_hostname(record)


def _validate_srv(record: Record) -> None:
    _check_uint(record.srv_priority, "priority", 65535, "SRV")
    _check_uint(record.srv_weight, "weight", 65535, "SRV")
    _check_uint(record.srv_port, "port", 65535, "SRV")
    _validate_hostname(record)


def _validate_caa(record: Record) -> None:
    _check_uint(record.caa_flag, "flag", 255, "CAA")
    tag = (record.caa_tag or "").lower()
    if tag not in CAA_TAGS:
        raise RecordValidationError(f"Unknown CAA tag {record.caa_tag!r} for {record.label}.")


def _validate_present(record: Record) -> None:
    if not record.target.strip():
        raise RecordValidationError(f"{record.type} record for {record.label} has an empty target.")


def _validate_nothing(record: Record) -> None:
    return None


def _normalize_ipv4(record: Record, origin: str) -> Record:
    return replace(record, target=str(ipaddress.IPv4Address(record.target.strip())))


def _normalize_ipv6(record: Record, origin: str) -> Record:
    return replace(record, target=ipaddress.IPv6Address(record.target.strip()).compressed)


def _normalize_hostname(record: Record, origin: str) -> Record:
    return replace(record, target=qualify(record.target, origin))


def _normalize_caa(record: Record, origin: str) -> Record:
    return replace(record, target=record.target.strip().strip('"'), caa_tag=(record.caa_tag or "").lower())


def _normalize_stripped(record: Record, origin: str) -> Record:
    return replace(record, target=record.target.strip())


def _normalize_verbatim(record: Record, origin: str) -> Record:
    return record


def _serialize_target(record: Record) -> str:
    return record.target


def _serialize_mx(record: Record) -> str:
    return f"{record.mx_preference} {record.target}"


def _serialize_srv(record: Record) -> str:
    return f"{record.srv_priority} {record.srv_weight} {record.srv_port} {record.target}"


def _serialize_caa(record: Record) -> str:
    return f'{record.caa_flag} {record.caa_tag} "{record.target}"'


def _split_fields(text: str, count: int, rtype: str) -> list[str]:
    parts = text.split(None, count - 1)
    if len(parts) != count:
        raise RecordValidationError(f"{rtype} value {text!r} must have {count} fields.")
    return parts


def _to_int(value: str, rtype: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise RecordValidationError(f"{rtype} field {value!r} is not a number.") from exc


def _parse_target(text: str) -> dict[str, Any]:
    return {"target": text.strip()}


def _parse_mx(text: str) -> dict[str, Any]:
    preference, target = _split_fields(text.strip(), 2, "MX")
    return {"target": target, "mx_preference": _to_int(preference, "MX")}


def _parse_srv(text: str) -> dict[str, Any]:
    priority, weight, port, target = _split_fields(text.strip(), 4, "SRV")
    return {
        "target": target,
        "srv_priority": _to_int(priority, "SRV"),
        "srv_weight": _to_int(weight, "SRV"),
        "srv_port": _to_int(port, "SRV"),
    }


def _parse_caa(text: str) -> dict[str, Any]:
    flag, tag, value = _split_fields(text.strip(), 3, "CAA")
    return {"target": value.strip().strip('"'), "caa_flag": _to_int(flag, "CAA"), "caa_tag": tag}


def _parse_txt(text: str) -> dict[str, Any]:
    stripped = text.strip()
    if stripped.startswith('"'):
        try:
            return {"target": "".join(shlex.split(stripped))}
        except ValueError as exc:
            raise RecordValidationError(f"Unbalanced quotes in TXT value {text!r}.") from exc
    return {"target": text}


@dataclass(frozen=True)
class RecordTypeSpec:
    """Behaviour bundle for one record type."""

    normalize: Callable[[Record, str], Record]
    serialize: Callable[[Record], str]
    validate: Callable[[Record], None]
    parse: Callable[[str], dict[str, Any]]


_HOSTNAME = RecordTypeSpec(_normalize_hostname, _serialize_target, _validate_hostname, _parse_target)
_REDIRECT = RecordTypeSpec(_normalize_stripped, _serialize_target, _validate_present, _parse_target)
_VERBATIM = RecordTypeSpec(_normalize_verbatim, _serialize_target, _validate_nothing, _parse_target)

RECORD_TYPES: dict[str, RecordTypeSpec] = {
    "A": RecordTypeSpec(_normalize_ipv4, _serialize_target, _validate_ipv4, _parse_target),
    "AAAA": RecordTypeSpec(_normalize_ipv6, _serialize_target, _validate_ipv6, _parse_target),
    "MX": RecordTypeSpec(_normalize_hostname, _serialize_mx, _validate_mx, _parse_mx),
    "SRV": RecordTypeSpec(_normalize_hostname, _serialize_srv, _validate_srv, _parse_srv),
    "CAA": RecordTypeSpec(_normalize_caa, _serialize_caa, _validate_caa, _parse_caa),
    "TXT": RecordTypeSpec(_normalize_verbatim, _serialize_target, _validate_nothing, _parse_txt),
    **{rtype: _HOSTNAME for rtype in HOSTNAME_TYPES},
    **{rtype: _REDIRECT for rtype in REDIRECT_TYPES},
}


def lookup(rtype: str) -> RecordTypeSpec:
    """Return the handler for a record type."""
    return RECORD_TYPES.get(rtype.upper(), _VERBATIM)


def serialize(record: Record) -> str:
    """Return the combined target string of a record."""
    return lookup(record.type).serialize(record)


def parse(rtype: str, label: str, text: str, ttl: int = 0) -> Record:
    """Build a record from a combined target string such as ``10 mail.example.com.``."""
    canonical_type = rtype.upper()
    fields = lookup(canonical_type).parse(text)
    return Record(label=label, type=canonical_type, ttl=ttl, **fields)


def normalize_record(record: Record, origin: str, default_ttl: int | None = None) -> Record:
    """Return the canonical form of a record within the given zone."""
    canonical_type = record.type.strip().upper()
    handler = lookup(canonical_type)
    record = replace(record, type=canonical_type, label=relative_label(record.label, origin))
    handler.validate(record)
    record = handler.normalize(record, origin)
    if not record.ttl and default_ttl:
        record = replace(record, ttl=default_ttl)
    return record


def normalize_records(records: Iterable[Record], origin: str, default_ttl: int | None = None) -> list[Record]:
    """Normalize every record of a zone."""
    return [normalize_record(record, origin, default_ttl) for record in records]


def decode_txt(strings: Sequence[bytes]) -> str:
    """Join the character strings of a TXT rdata into one UTF-8 target."""
    return b"".join(strings).decode("utf-8", errors="replace")


def _escape_txt(chunk: bytes) -> str:
    parts = []
    for byte in chunk:
        if byte in (0x22, 0x5C):
            parts.append("\\" + chr(byte))
        elif 0x20 <= byte < 0x7F:
            parts.append(chr(byte))
        else:
            parts.append(f"\\{byte:03d}")
    return "".join(parts)


def _quote_txt(text: str) -> str:
    """Return TXT data as quoted 255-byte character strings, non-ASCII bytes as \\DDD."""
    data = text.encode("utf-8")
    chunks = [data[i : i + 255] for i in range(0, len(data), 255)] or [b""]
    return " ".join(f'"{_escape_txt(chunk)}"' for chunk in chunks)


def presentation(record: Record) -> str:
    """Return record data in zone-file presentation format."""
    if record.type == "TXT":
        return _quote_txt(record.target)
    return serialize(record)