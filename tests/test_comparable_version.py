"""Tests for Maven version ordering and version ranges."""

import pytest

from errors import InvalidVersionSpecError
from versioning.comparable import ComparableVersion, VersionRange


def v(text):
    return ComparableVersion(text)


class TestOrdering:
    """Ordering of version strings."""

    def test_numeric_segments_compare_numerically(self):
        """Test numbers compare as integers."""
        assert v("1.9") < v("1.10")
        assert v("2") > v("1.999")

    def test_trailing_zeros_are_insignificant(self):
        """Test trailing zero segments are ignored."""
        assert v("1.0") == v("1")
        assert v("1.0.0") == v("1")
        assert hash(v("1.0.0")) == hash(v("1"))

    def test_release_aliases(self):
        """Test ga, final and release equal the bare release."""
        assert v("1-ga") == v("1")
        assert v("1-final") == v("1")
        assert v("1.0-cr1") == v("1.0-rc1")

    def test_single_letter_aliases_before_digits(self):
        """Test a, b and m before digits expand to qualifiers."""
        assert v("1.0-a1") == v("1.0-alpha-1")
        assert v("1.0-b2") == v("1.0-beta-2")
        assert v("1.0-m3") == v("1.0-milestone-3")

    def test_known_qualifier_order(self):
        """Test the order of known qualifiers."""
        chain = ["1.0-alpha-1", "1.0-beta", "1.0-milestone-1", "1.0-rc1", "1.0-SNAPSHOT", "1.0", "1.0-sp"]
        versions = [v(t) for t in chain]
        assert sorted(reversed(versions)) == versions

    def test_unknown_qualifiers_sort_between_snapshot_and_release(self):
        """Test unrecognized qualifiers sort between snapshot and the release."""
        assert v("1.0-SNAPSHOT") < v("1.0-bar") < v("1.0-foo") < v("1.0") < v("1.0-sp")
        assert v("1.0-foo") < v("1.0.1")
        assert v("1.0-foo") > v("1.0-rc1")

    def test_incremental_sorts_between_releases(self):
        """Test incremental versions sort between releases."""
        incremental = v("1.2-rc1.abc")
        assert v("1.1") < incremental < v("1.2")

    def test_str_keeps_original_text(self):
        """Test str returns the text as given."""
        assert str(v("1.0.0-GA")) == "1.0.0-GA"
        assert v("1.0.0-GA").canonical == "1"

    def test_sort_descending_with_duplicates_collapsed(self):
        """Test equal versions collapse in a set."""
        versions = {v("1.0"), v("1.0.0"), v("1.1"), v("1.2-rc1.aaaaaaaaaaaa")}
        assert [str(x) for x in sorted(versions, reverse=True)][:2] == ["1.2-rc1.aaaaaaaaaaaa", "1.1"]
        assert len(versions) == 3


class TestVersionRange:
    """Parsing and membership of version ranges."""

    def test_bare_version_means_at_least(self):
        """Test a bare version allows itself and newer."""
        allowed = VersionRange.parse("2.0.4")
        assert allowed.contains(v("2.0.4"))
        assert allowed.contains(v("3"))
        assert not allowed.contains(v("2.0.3"))
        assert str(allowed) == "[2.0.4,)"

    def test_half_open_interval(self):
        """Test a half-open range."""
        allowed = VersionRange.parse("[2.0,2.1)")
        assert allowed.contains(v("2.0"))
        assert allowed.contains(v("2.0.5"))
        assert not allowed.contains(v("2.1"))
        assert str(allowed) == "[2.0,2.1)"

    def test_multiple_sets(self):
        """Test a union of ranges."""
        allowed = VersionRange.parse("(,2.0.5],[2.1.1,)")
        assert allowed.contains(v("1.0"))
        assert allowed.contains(v("2.0.5"))
        assert not allowed.contains(v("2.1"))
        assert allowed.contains(v("2.2"))

    def test_exact_version(self):
        """Test a single-version range."""
        allowed = VersionRange.parse("[1.5]")
        assert allowed.contains(v("1.5"))
        assert not allowed.contains(v("1.5.1"))

    @pytest.mark.parametrize("spec", [
        "",
        "[2.0",
        "(1.0)",
        "[,1.0]",
        "[2.0,1.0]",
        "[1.0,2.0],[1.5,3.0]",
        "[1.0,2.0]x",
    ])
    def test_invalid_specs(self, spec):
        """Test malformed ranges are rejected."""
        with pytest.raises(InvalidVersionSpecError):
            VersionRange.parse(spec)
