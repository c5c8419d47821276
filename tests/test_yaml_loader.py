"""Tests for desired-state YAML loading."""

from __future__ import annotations

import textwrap

import pytest

from zonectl.exporter import records_to_yaml
from zonectl.models import ConfigurationError, Record
from zonectl.rtypes import normalize_records
from zonectl.yaml_loader import load_desired_zone


def write(tmp_path, body, name="zone.yaml"):
    path = tmp_path / name
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


class TestLoadDesiredZone:
    """YAML → ZoneDeclaration."""

    def test_basic_document(self, tmp_path):
        path = write(
            tmp_path,
            """
            zone: Example.com
            default_ttl: 600
            nameservers: [ns1.example.net, ns2.example.net]
            ignore: ["dyn-*"]
            records:
              - {name: "@", type: a, value: 192.0.2.1}
              - {name: www, type: CNAME, value: "@", ttl: 60}
              - {name: "@", type: MX, value: mail, priority: 10}
              - {name: "@", type: CAA, value: letsencrypt.org, flag: 0, tag: issue}
              - {name: _sip._tcp, type: SRV, value: sip, priority: 10, weight: 5, port: 5060}
            """,
        )
        declaration = load_desired_zone(path, default_ttl=3600)
        assert declaration.origin == "example.com."
        assert declaration.default_ttl == 600  # noqa: PLR2004
        assert declaration.nameservers == ["ns1.example.net", "ns2.example.net"]
        assert declaration.ignore == ["dyn-*"]
        records = normalize_records(declaration.records, declaration.origin, declaration.default_ttl)
        assert records[0] == Record("@", "A", "192.0.2.1", ttl=600)
        assert records[1] == Record("www", "CNAME", "example.com.", ttl=60)
        assert records[2].combined() == "10 mail.example.com."
        assert records[3].combined() == '0 issue "letsencrypt.org"'
        assert records[4].combined() == "10 5 5060 sip.example.com."

    def test_combined_values_are_parsed(self, tmp_path):
        path = write(
            tmp_path,
            """
            zone: example.com
            records:
              - {name: "@", type: MX, value: "20 mx2.example.net."}
              - {name: "@", type: CAA, value: '0 iodef "mailto:sec@example.com"'}
            """,
        )
        mx, caa = load_desired_zone(path, default_ttl=3600).records
        assert (mx.mx_preference, mx.target) == (20, "mx2.example.net.")
        assert (caa.caa_flag, caa.caa_tag, caa.target) == (0, "iodef", "mailto:sec@example.com")

    def test_zone_hint_and_template_vars(self, tmp_path):
        path = write(
            tmp_path,
            """
            records:
              - {name: www, type: A, value: "{{ web_ip }}"}
            """,
        )
        declaration = load_desired_zone(path, default_ttl=300, zone_hint="example.org", template_vars={"web_ip": "192.0.2.7"})
        assert declaration.origin == "example.org."
        assert declaration.default_ttl == 300  # noqa: PLR2004
        assert declaration.records[0].target == "192.0.2.7"

    def test_missing_zone_name(self, tmp_path):
        path = write(tmp_path, "records: []\n")
        with pytest.raises(ConfigurationError, match="Zone name is required"):
            load_desired_zone(path, default_ttl=300)

    def test_undefined_template_variable(self, tmp_path):
        path = write(tmp_path, "zone: example.com\nrecords:\n  - {name: www, type: A, value: '{{ nope }}'}\n")
        with pytest.raises(ConfigurationError):
            load_desired_zone(path, default_ttl=300)

    def test_invalid_yaml(self, tmp_path):
        path = write(tmp_path, "zone: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            load_desired_zone(path, default_ttl=300)

    def test_schema_violation(self, tmp_path):
        path = write(tmp_path, "zone: example.com\nrecords:\n  - {name: www, value: 192.0.2.1}\n")
        with pytest.raises(ConfigurationError, match="YAML validation error"):
            load_desired_zone(path, default_ttl=300)


class TestExporterRoundTrip:
    """Pulled state can be fed back to the loader."""

    def test_export_then_load(self, tmp_path):
        records = [
            Record("www", "A", "192.0.2.1", ttl=300),
            Record("@", "MX", "mail.example.com.", ttl=300, mx_preference=10),
        ]
        path = tmp_path / "pulled.yaml"
        path.write_text(records_to_yaml("example.com.", records), encoding="utf-8")
        declaration = load_desired_zone(path, default_ttl=300)
        assert normalize_records(declaration.records, declaration.origin) == sorted(records, key=Record.sort_key)
