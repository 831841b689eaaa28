"""
Tests for health_audit.policy module.
"""

import pytest
import yaml

from health_audit.policy.tables import (
    Comparator,
    HostPolicy,
    PolicyError,
    PolicyTables,
    ThresholdRule,
    load_policy_tables,
)


class TestThresholdRule:
    """Test cases for ThresholdRule."""

    def test_comparators(self):
        """Test every comparator at its boundary."""
        assert ThresholdRule(limit=40, comparator=Comparator.LT).passes(39)
        assert not ThresholdRule(limit=40, comparator=Comparator.LT).passes(40)
        assert ThresholdRule(limit=40, comparator=Comparator.LE).passes(40)
        assert ThresholdRule(limit=4, comparator=Comparator.EQ).passes(4)
        assert not ThresholdRule(limit=4, comparator=Comparator.EQ).passes(5)
        assert ThresholdRule(limit=14, comparator=Comparator.GT).passes(15)
        assert ThresholdRule(limit=250, comparator=Comparator.GE).passes(250)

    def test_membership(self):
        """Test the membership comparator."""
        rule = ThresholdRule(limit=["online", "legacy_run"], comparator=Comparator.IN)
        assert rule.passes("online")
        assert not rule.passes("maintenance")

    def test_default_comparator(self):
        """Test that the default comparator is inclusive."""
        assert ThresholdRule(limit=91).comparator is Comparator.LE

    def test_str(self):
        """Test the display form of a rule."""
        assert str(ThresholdRule(limit=40, comparator=Comparator.LT, unit="%")) == "< 40%"


class TestHostPolicy:
    """Test cases for HostPolicy accessors."""

    def test_missing_entries_raise_policy_error(self):
        """Test that each accessor raises PolicyError for a missing entry."""
        policy = HostPolicy(role="bare")

        for accessor, args in [
            (policy.threshold, ("CheckDisksSU",)),
            (policy.item_threshold, ("CheckOssDisksSU", "/export")),
            (policy.expected_set, ("CheckSrvs",)),
            (policy.expected_count, ("DeepCheckETLC",)),
            (policy.schedule, ("CheckBackupPoliciesSchedExec",)),
            (policy.marker, ("MonVrstDb",)),
        ]:
            with pytest.raises(PolicyError) as exc_info:
                accessor(*args)
            assert "bare" in str(exc_info.value)

    def test_setting_default(self):
        """Test optional settings."""
        policy = HostPolicy(role="bare", settings={"a": 1})
        assert policy.setting("a") == 1
        assert policy.setting("b", []) == []

    def test_expected_set_is_a_copy(self):
        """Test that callers cannot change the policy through a returned set."""
        policy = HostPolicy(role="r", expected_sets={"CheckSrvs": ["a"]})
        policy.expected_set("CheckSrvs").append("b")

        assert policy.expected_set("CheckSrvs") == ["a"]


class TestBuiltinTables:
    """Test cases for the built-in role policies."""

    def test_roles(self):
        """Test that every audited role has a policy."""
        tables = PolicyTables.builtin()
        for role in (
            "oss-master",
            "uas",
            "eniq-coordinator",
            "eniq-engine",
            "eniq-reader",
            "eniq-writer",
            "enm-ms",
            "ombs-site-a",
            "ombs-site-b",
        ):
            assert tables.has_role(role)

    def test_comparators_kept_per_check(self):
        """Test that strict and inclusive limits are kept as configured."""
        oss = PolicyTables.builtin().for_role("oss-master")

        assert oss.threshold("CheckDisksSU").comparator is Comparator.LT
        assert oss.item_threshold("CheckOssDisksSU", "/ossrc/sybdev/oss/sybdata").limit == 91
        assert (
            oss.item_threshold("CheckOssDisksSU", "/ossrc/sybdev/oss/sybdata").comparator
            is Comparator.LE
        )

    def test_ddc_not_tracked_for_drift(self):
        """Test that the DDC monitor is required but not tracked for restarts."""
        engine = PolicyTables.builtin().for_role("eniq-engine")
        ddc = "svc:/ericsson/eric_monitor/ddc:default"

        assert ddc in engine.expected_set("CheckSrvs")
        assert ddc not in engine.expected_set("CheckSrvsUptime")

    def test_unknown_role(self):
        """Test that an unknown role raises PolicyError."""
        with pytest.raises(PolicyError):
            PolicyTables.builtin().for_role("mainframe")

    def test_fresh_copy(self):
        """Test that each call builds independent tables."""
        assert PolicyTables.builtin().for_role("uas") is not PolicyTables.builtin().for_role("uas")


class TestPolicyFiles:
    """Test cases for loading and dumping policy files."""

    def test_round_trip_through_yaml(self, tmp_path):
        """Test that dumped built-in tables load back equal."""
        path = tmp_path / "policy.yaml"
        path.write_text(yaml.safe_dump(PolicyTables.builtin().to_dict()))

        loaded = PolicyTables.from_file(path)

        assert loaded.for_role("oss-master") == PolicyTables.builtin().for_role("oss-master")

    def test_file_roles_replace_builtin(self, tmp_path):
        """Test that a role in the file replaces the built-in role."""
        path = tmp_path / "policy.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "roles": {
                        "uas": {
                            "thresholds": {
                                "CheckDisksSU": {"limit": 60, "comparator": "<=", "unit": "%"}
                            }
                        },
                        "lab": {"description": "lab server"},
                    }
                }
            )
        )

        tables = load_policy_tables(path)

        assert tables.for_role("uas").threshold("CheckDisksSU").limit == 60
        assert "CheckHostUptime" not in tables.for_role("uas").thresholds
        assert tables.for_role("lab").description == "lab server"
        assert tables.has_role("oss-master")

    def test_file_must_be_mapping(self, tmp_path):
        """Test that a list document is rejected."""
        path = tmp_path / "policy.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError):
            PolicyTables.from_file(path)

    def test_invalid_comparator(self):
        """Test that an unknown comparator is rejected."""
        with pytest.raises(ValueError):
            PolicyTables.from_dict(
                {"roles": {"x": {"thresholds": {"A": {"limit": 1, "comparator": "~"}}}}}
            )
