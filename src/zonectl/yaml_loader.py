"""Load and validate desired-state YAML files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError
from pydantic import BaseModel, Field, ValidationError, field_validator

from .models import ConfigurationError, Record, ZoneDeclaration
from .rtypes import ensure_absolute, parse

STRUCTURED_TYPES = {"MX", "SRV", "CAA"}


class RecordSpec(BaseModel):
    """Schema for a desired DNS record."""

    name: str = "@"
    type: str
    value: str
    ttl: int | None = Field(default=None, ge=0)
    priority: int | None = Field(default=None, description="Preference for MX, priority for SRV")
    weight: int | None = None
    port: int | None = None
    flag: int | None = Field(default=None, description="CAA flag")
    tag: str | None = Field(default=None, description="CAA tag")

    @field_validator("type")
    @classmethod
    def _uppercase_type(cls, value: str) -> str:
        """Normalise RR type to uppercase."""
        return value.strip().upper()

    def _has_fields(self) -> bool:
        if self.type == "MX":
            return self.priority is not None
        if self.type == "SRV":
            return None not in (self.priority, self.weight, self.port)
        if self.type == "CAA":
            return self.flag is not None and self.tag is not None
        return True

    def to_record(self) -> Record:
        """Build a record, parsing combined values when fields are omitted."""
        ttl = self.ttl or 0
        if self.type in STRUCTURED_TYPES and not self._has_fields():
            return parse(self.type, self.name, self.value, ttl=ttl)
        return Record(
            label=self.name,
            type=self.type,
            target=self.value,
            ttl=ttl,
            mx_preference=self.priority if self.type == "MX" else None,
            srv_priority=self.priority if self.type == "SRV" else None,
            srv_weight=self.weight if self.type == "SRV" else None,
            srv_port=self.port if self.type == "SRV" else None,
            caa_flag=self.flag if self.type == "CAA" else None,
            caa_tag=self.tag if self.type == "CAA" else None,
        )


class ZoneSpec(BaseModel):
    """Schema for the YAML document."""

    zone: str | None = None
    default_ttl: int | None = Field(default=None, ge=0)
    records: list[RecordSpec] = Field(default_factory=list)
    nameservers: list[str] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)


def _render_yaml(path: Path, extra_context: dict[str, Any] | None = None) -> str:
    """Render a YAML file through Jinja2."""
    env = Environment(
        loader=FileSystemLoader(str(path.parent)),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    template = env.get_template(path.name)
    context = {"env": os.environ}
    if extra_context:
        context.update(extra_context)
    return template.render(**context)


def load_desired_zone(
    path: Path,
    default_ttl: int,
    zone_hint: str | None = None,
    template_vars: dict[str, Any] | None = None,
) -> ZoneDeclaration:
    """Load a desired zone YAML and turn it into a declaration."""
    try:
        rendered = _render_yaml(path, template_vars)
    except TemplateError as exc:
        raise ConfigurationError(f"Failed to render {path}: {exc}") from exc
    try:
        data = yaml.safe_load(rendered) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse YAML: {exc}") from exc

    try:
        document = ZoneSpec(**data)
    except (TypeError, ValidationError) as exc:
        raise ConfigurationError(f"YAML validation error: {exc}") from exc

    origin = ensure_absolute(document.zone or zone_hint or "")
    if origin == ".":
        raise ConfigurationError("Zone name is required via YAML 'zone' or --zone flag.")

    return ZoneDeclaration(
        origin=origin.lower(),
        records=[record.to_record() for record in document.records],
        nameservers=document.nameservers,
        default_ttl=document.default_ttl or default_ttl,
        ignore=document.ignore,
    )
