"""
Tests for core.composite.versions — Version and VersionRange.
"""

import pytest

from core.composite.versions import (
    EMPTY_VERSION,
    InvalidVersionError,
    Version,
    VersionRange,
)


# ── Version ──────────────────────────────────────────────────

class TestVersion:
    def test_parse_full(self):
        v = Version.parse("1.2.3.beta")
        assert (v.major, v.minor, v.micro, v.qualifier) == (1, 2, 3, "beta")
        assert str(v) == "1.2.3.beta"

    def test_parse_pads_missing_components(self):
        assert Version.parse("4") == Version(4, 0, 0)
        assert str(Version.parse("4.1")) == "4.1.0"

    def test_none_and_blank_are_empty(self):
        assert Version.parse(None) is EMPTY_VERSION
        assert Version.parse("  ") is EMPTY_VERSION

    def test_non_numeric_component_rejected(self):
        with pytest.raises(InvalidVersionError):
            Version.parse("1.x")

    def test_negative_component_rejected(self):
        with pytest.raises(InvalidVersionError):
            Version.parse("-1.0")
        with pytest.raises(ValueError):
            Version(-1)

    def test_ordering_is_numeric(self):
        assert Version(1, 2) < Version(1, 10)
        assert Version(1, 0, 0) < Version(1, 0, 0, "a") < Version(1, 0, 0, "b")

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Version(1).major = 2


# ── VersionRange ─────────────────────────────────────────────

class TestVersionRange:
    def test_half_open_interval(self):
        r = VersionRange.parse("[1.0,2.0)")
        assert r.includes(Version(1))
        assert r.includes(Version(1, 9, 9))
        assert not r.includes(Version(2))

    def test_exclusive_minimum_inclusive_maximum(self):
        r = VersionRange.parse("(1,2]")
        assert not r.includes(Version(1))
        assert r.includes(Version(2))

    def test_bare_version_is_open_ended(self):
        r = VersionRange.parse("1.0")
        assert r.includes(Version(1))
        assert r.includes(Version(99))
        assert not r.includes(Version(0, 9))

    def test_quoted_text_accepted(self):
        assert VersionRange.parse('"[1,2)"') == VersionRange.parse("[1,2)")

    def test_empty_ranges_match_nothing(self):
        assert VersionRange.parse("[2,1]").is_empty()
        assert VersionRange.parse("[1,1)").is_empty()
        assert not VersionRange.parse("[1,1)").includes(Version(1))
        assert VersionRange.parse("[1,1]").includes(Version(1))

    def test_str_round_trip(self):
        assert str(VersionRange.parse("[1.0,2.0)")) == "[1.0.0,2.0.0)"
        assert str(VersionRange.parse("1.5")) == "1.5.0"

    @pytest.mark.parametrize("text", ["[1.0,2.0", "[1,2,3)", "[a,2)"])
    def test_malformed(self, text):
        with pytest.raises(InvalidVersionError):
            VersionRange.parse(text)
