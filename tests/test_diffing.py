"""Tests for the diff engine."""

from __future__ import annotations

from conftest import BUNDLE_ONLY, INCREMENTAL, a, with_ttl

from zonectl.diffing import diff_records, filter_apex_ns
from zonectl.models import Record
from zonectl.providers.base import is_parking_placeholder

REGISTRAR_NS = ("dns1.registrar-servers.com", "dns2.registrar-servers.com")


def ns(target, label="@"):
    return Record(label=label, type="NS", target=target, ttl=1800)


class TestBasicDiff:
    """Create/delete/modify classification."""

    def test_identical_sets_are_empty(self):
        records = [a("@", "192.0.2.1"), a("www", "192.0.2.2")]
        change_set = diff_records(records, list(reversed(records)), INCREMENTAL)
        assert not change_set.has_changes()
        assert change_set.total() == 0

    def test_additions_only(self):
        current = [a("www", "192.0.2.1")]
        desired = [*current, a("www", "192.0.2.2"), a("api", "192.0.2.3")]
        change_set = diff_records(desired, current, INCREMENTAL)
        assert change_set.to_create == [a("api", "192.0.2.3"), a("www", "192.0.2.2")]
        assert change_set.to_delete == []
        assert change_set.to_modify == []

    def test_deletions(self):
        current = [a("www", "192.0.2.1"), a("old", "192.0.2.9")]
        change_set = diff_records([a("www", "192.0.2.1")], current, INCREMENTAL)
        assert change_set.to_delete == [a("old", "192.0.2.9")]
        assert change_set.to_create == []

    def test_single_value_change_touches_only_that_value(self):
        current = [a("www", "192.0.2.1"), a("www", "192.0.2.2")]
        desired = [a("www", "192.0.2.1"), a("www", "192.0.2.3")]
        change_set = diff_records(desired, current, INCREMENTAL)
        assert change_set.to_create == [a("www", "192.0.2.3")]
        assert change_set.to_delete == [a("www", "192.0.2.2")]
        assert change_set.to_modify == []

    def test_ttl_only_change_is_modify(self):
        current = [a("www", "192.0.2.1", ttl=300)]
        desired = [a("www", "192.0.2.1", ttl=600)]
        change_set = diff_records(desired, current, INCREMENTAL)
        assert change_set.to_create == []
        assert change_set.to_delete == []
        assert len(change_set.to_modify) == 1
        change = change_set.to_modify[0]
        assert change.before.ttl == 300  # noqa: PLR2004
        assert change.after.ttl == 600  # noqa: PLR2004

    def test_mx_preference_change_is_modify(self):
        before = Record("@", "MX", "mail.example.com.", ttl=300, mx_preference=10)
        after = Record("@", "MX", "mail.example.com.", ttl=300, mx_preference=20)
        change_set = diff_records([after], [before], INCREMENTAL)
        assert [(c.before, c.after) for c in change_set.to_modify] == [(before, after)]

    def test_same_label_different_types_are_independent(self):
        current = [a("www", "192.0.2.1")]
        desired = [a("www", "192.0.2.1"), Record("www", "TXT", "hello", ttl=300)]
        change_set = diff_records(desired, current, INCREMENTAL)
        assert change_set.to_create == [Record("www", "TXT", "hello", ttl=300)]

    def test_duplicate_desired_records_count_once(self):
        record = a("www", "192.0.2.1")
        change_set = diff_records([record, record], [record], INCREMENTAL)
        assert not change_set.has_changes()
        assert change_set.desired == [record]

    def test_srv_pairs_by_target(self):
        current = [
            Record("_sip._tcp", "SRV", "sip.example.com.", 300, srv_priority=10, srv_weight=5, srv_port=5060),
            Record("_sip._tcp", "SRV", "sip.example.com.", 300, srv_priority=10, srv_weight=5, srv_port=5061),
        ]
        desired = [current[0], with_ttl(current[1], 900)]
        change_set = diff_records(desired, current, INCREMENTAL)
        assert change_set.to_create == []
        assert change_set.to_delete == []
        assert [c.after for c in change_set.to_modify] == [desired[1]]


class TestOrdering:
    """Output is stable regardless of input order."""

    def test_repeated_runs_describe_identically(self):
        current = [a("b", "192.0.2.2"), a("a", "192.0.2.1"), a("c", "192.0.2.3", ttl=60)]
        desired = [a("z", "192.0.2.9"), a("c", "192.0.2.3"), a("y", "192.0.2.8")]
        first = diff_records(desired, current, INCREMENTAL).describe()
        second = diff_records(list(reversed(desired)), list(reversed(current)), INCREMENTAL).describe()
        assert first == second
        assert first == [
            "+ CREATE y A 192.0.2.8 ttl=300",
            "+ CREATE z A 192.0.2.9 ttl=300",
            "- DELETE a A 192.0.2.1 ttl=300",
            "- DELETE b A 192.0.2.2 ttl=300",
            "~ MODIFY c A 192.0.2.3 ttl=60 -> 192.0.2.3 ttl=300",
        ]


class TestApexNS:
    """Apex NS handling for providers whose registrar owns the delegation."""

    def test_custom_apex_ns_is_filtered_with_notice(self):
        desired = [a("@", "192.0.2.1"), ns("ns1.other-dns.net.")]
        change_set = diff_records(desired, [a("@", "192.0.2.1")], BUNDLE_ONLY, default_nameservers=REGISTRAR_NS)
        assert not change_set.has_changes()
        assert len(change_set.to_report) == 1
        assert "ns1.other-dns.net." in change_set.to_report[0].message
        assert "does not support changing apex NS records" in change_set.to_report[0].message
        assert change_set.desired == [a("@", "192.0.2.1")]

    def test_default_apex_ns_is_filtered_silently(self):
        kept, notices = filter_apex_ns(
            [ns("dns1.registrar-servers.com."), ns("dns2.registrar-servers.com.")],
            BUNDLE_ONLY,
            REGISTRAR_NS,
        )
        assert kept == []
        assert notices == []

    def test_delegation_ns_below_apex_is_kept(self):
        sub = ns("ns1.other-dns.net.", label="sub")
        kept, notices = filter_apex_ns([sub], BUNDLE_ONLY, REGISTRAR_NS)
        assert kept == [sub]
        assert notices == []

    def test_apex_ns_managed_when_provider_allows(self):
        record = ns("ns1.other-dns.net.")
        change_set = diff_records([record], [], INCREMENTAL)
        assert change_set.to_create == [record]
        assert change_set.to_report == []

    def test_current_apex_ns_is_not_deleted(self):
        current = [ns("dns1.registrar-servers.com.")]
        change_set = diff_records([], current, BUNDLE_ONLY, default_nameservers=REGISTRAR_NS)
        assert not change_set.has_changes()
        assert change_set.preserved == current


class TestPlaceholder:
    """Parking records injected into empty zones."""

    placeholder = [
        Record("@", "CNAME", "parkingpage.namecheap.com.", ttl=1800),
        Record("www", "URL", "http://www.example.com/?from=@", ttl=1800),
    ]

    def test_placeholder_with_empty_desired_is_no_op(self):
        change_set = diff_records([], self.placeholder, BUNDLE_ONLY, is_placeholder=is_parking_placeholder)
        assert not change_set.has_changes()
        assert change_set.to_report == []

    def test_placeholder_is_deleted_when_records_are_desired(self):
        desired = [a("@", "192.0.2.1")]
        change_set = diff_records(desired, self.placeholder, BUNDLE_ONLY, is_placeholder=is_parking_placeholder)
        assert change_set.to_create == desired
        assert len(change_set.to_delete) == 2  # noqa: PLR2004

    def test_non_matching_snapshot_is_deleted(self):
        current = [Record("@", "CNAME", "elsewhere.example.net.", ttl=1800), self.placeholder[1]]
        change_set = diff_records([], current, BUNDLE_ONLY, is_placeholder=is_parking_placeholder)
        assert len(change_set.to_delete) == 2  # noqa: PLR2004


class TestIgnore:
    """Ignore patterns shield current records from deletion."""

    def test_ignored_labels_are_not_deleted(self):
        current = [a("www", "192.0.2.1"), a("dyn-home", "198.51.100.7")]
        change_set = diff_records([a("www", "192.0.2.1")], current, INCREMENTAL, ignore=["dyn-*"])
        assert not change_set.has_changes()

    def test_ignored_records_are_preserved(self):
        current = [a("www", "192.0.2.1"), a("dyn-home", "198.51.100.7"), a("dyn-away", "198.51.100.8")]
        change_set = diff_records([a("www", "192.0.2.1")], current, BUNDLE_ONLY, ignore=["dyn-*"])
        assert change_set.desired == [a("www", "192.0.2.1")]
        assert change_set.preserved == [a("dyn-away", "198.51.100.8"), a("dyn-home", "198.51.100.7")]
