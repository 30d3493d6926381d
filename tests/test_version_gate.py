# tests/test_version_gate.py
"""
Tests for version parsing and the sorbet-static version gate.
"""

import logging

import pytest

from strictmemo.version_gate import (
    DEFAULT_MINIMUM_VERSION,
    DEFAULT_PACKAGE,
    GateDecision,
    VersionGate,
    compare_versions,
    parse_version,
)


class TestParseVersion:

    @pytest.mark.parametrize("text,expected", [
        ("0.5.10210", (0, 5, 10210)),
        ("1", (1,)),
        (" 0.5.11000 ", (0, 5, 11000)),
    ])
    def test_valid(self, text, expected):
        assert parse_version(text) == expected

    @pytest.mark.parametrize("text", ["", "0.5.x", "0.5.10210.pre", "1..2", "v1.0", "-1"])
    def test_invalid(self, text):
        assert parse_version(text) is None


class TestCompareVersions:

    @pytest.mark.parametrize("left,right,expected", [
        ((0, 5, 10210), (0, 5, 10210), 0),
        ((0, 5, 10209), (0, 5, 10210), -1),
        ((0, 6), (0, 5, 10210), 1),
        ((0, 5, 10210, 0), (0, 5, 10210), 0),
        ((1,), (0, 9, 9), 1),
    ])
    def test_compare(self, left, right, expected):
        assert compare_versions(left, right) == expected


class TestVersionGate:
    """Gate decisions for different lockfile contents."""

    @pytest.fixture
    def gate(self):
        return VersionGate()

    def test_defaults(self, gate):
        assert gate.package == DEFAULT_PACKAGE == "sorbet-static"
        assert gate.minimum == DEFAULT_MINIMUM_VERSION == "0.5.10210"

    @pytest.mark.parametrize("version,active", [
        ("0.5.10210", True),
        ("0.5.10211", True),
        ("0.6.0", True),
        ("0.5.10209", False),
        ("0.4.99999", False),
    ])
    def test_threshold(self, gate, version, active):
        decision = gate.evaluate({"sorbet-static": version})
        assert decision.active is active
        assert bool(decision) is active
        assert decision.locked_version == version
        assert gate.resolve({"sorbet-static": version}) is active

    def test_missing_package(self, gate):
        decision = gate.evaluate({"foo": "0.0.1", "bar": "0.0.2"})
        assert decision == GateDecision(
            active=False,
            package="sorbet-static",
            locked_version=None,
            minimum_version="0.5.10210",
            reason=decision.reason,
        )
        assert "not locked" in decision.reason

    def test_other_sorbet_packages_do_not_count(self, gate):
        assert not gate.resolve({"sorbet": "0.5.11000", "sorbet-runtime": "0.5.11000"})

    def test_unparseable_version_warns(self, gate, caplog):
        with caplog.at_level(logging.WARNING, logger="strictmemo.version_gate"):
            decision = gate.evaluate({"sorbet-static": "0.5.10210.rc1"})
        assert not decision.active
        assert "cannot interpret" in caplog.text

    def test_custom_package(self):
        gate = VersionGate(package="sorbet", minimum="1.0")
        assert gate.resolve({"sorbet": "1.0.0"})
        assert not gate.resolve({"sorbet-static": "2.0"})

    def test_invalid_minimum(self):
        with pytest.raises(ValueError):
            VersionGate(minimum="latest")
