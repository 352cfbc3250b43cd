"""
Unit tests for Go version string handling.
"""

import pytest

from govm.core import version as versions
from govm.core.exceptions import ConfigurationError


class TestNormalize:
    """Test version normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1.22.0", "1.22.0"),
            ("go1.22.0", "1.22.0"),
            ("v1.21.5", "1.21.5"),
            ("  1.20\n", "1.20"),
            ("go1.23rc1", "1.23rc1"),
        ],
    )
    def test_normalize(self, raw, expected):
        """Test prefixes and whitespace are stripped."""
        assert versions.normalize(raw) == expected


class TestValidate:
    """Test version validation."""

    @pytest.mark.parametrize(
        "version", ["1.22.0", "1.21", "1.23rc1", "1.22beta2", "1.9.7"]
    )
    def test_valid_versions(self, version):
        """Test well-formed versions are accepted."""
        assert versions.is_valid(version)

    @pytest.mark.parametrize(
        "version", ["", "latest", "1", "1.22.0.1", "1.22-rc1", "../1.22.0", "1.22.0 "]
    )
    def test_invalid_versions(self, version):
        """Test malformed versions are rejected."""
        assert not versions.is_valid(version)

    def test_validate_returns_normalized(self):
        """Test validate normalizes before checking."""
        assert versions.validate("go1.22.0") == "1.22.0"

    def test_validate_raises_configuration_error(self):
        """Test validate raises ConfigurationError naming the input."""
        with pytest.raises(ConfigurationError, match="not-a-version"):
            versions.validate("not-a-version")


class TestOrdering:
    """Test release ordering."""

    def test_patch_ordering(self):
        """Test numeric rather than lexical comparison."""
        assert versions.parse("1.22.10") > versions.parse("1.22.9")

    def test_prerelease_before_final(self):
        """Test beta < rc < final for the same numbers."""
        assert versions.parse("1.22beta1") < versions.parse("1.22rc1")
        assert versions.parse("1.22rc2") < versions.parse("1.22.0")

    def test_missing_patch_is_zero(self):
        """Test '1.21' sorts as '1.21.0'."""
        assert versions.parse("1.21") == versions.parse("1.21.0")

    def test_sort_newest_first(self):
        """Test sort_versions puts the newest first by default."""
        result = versions.sort_versions(["1.21.5", "1.22.0", "1.9.2", "1.22rc1"])
        assert result == ["1.22.0", "1.22rc1", "1.21.5", "1.9.2"]

    def test_sort_oldest_first(self):
        """Test ascending sort."""
        result = versions.sort_versions(["1.22.0", "1.21.0"], newest_first=False)
        assert result == ["1.21.0", "1.22.0"]

    def test_malformed_sorts_last(self):
        """Test malformed names sort below every release."""
        result = versions.sort_versions(["garbage", "1.20.0"])
        assert result == ["1.20.0", "garbage"]
