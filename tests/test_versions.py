"""Tests for dotted-numeric version handling."""
import pytest

from devsetup.core.versions import (
    FALLBACK_VERSIONS,
    extract_version,
    is_valid_version,
    major,
    parse_version,
    resolve_install_version,
    satisfies,
)


class TestSatisfies:
    """Installed vs. minimum comparison."""

    @pytest.mark.parametrize("installed,minimum,expected", [
        ("3.12.3", "3.12", True),
        ("3.12", "3.12.0", True),
        ("3.11.9", "3.12", False),
        ("1.10.0", "1.9.0", True),
        ("1.9.0", "1.10.0", False),
        ("2", "1.99.99", True),
        ("1.2.0", "1.2.1", False),
        ("v22.4.0", "20", True),
        ("18.19.1", "20", False),
    ])
    def test_numeric_comparison(self, installed, minimum, expected):
        assert satisfies(installed, minimum) is expected

    def test_latest_accepts_anything(self):
        assert satisfies("0.0.1", "latest") is True
        assert satisfies("unknown", "latest") is True

    def test_unparseable_installed_version_never_satisfies(self):
        assert satisfies("unknown", "1.0") is False
        assert satisfies(None, "1.0") is False

    def test_not_lexical(self):
        """'10' sorts before '9' as text but is the newer version."""
        assert "1.10" < "1.9"
        assert satisfies("1.10", "1.9") is True


class TestParsing:

    def test_parse_version(self):
        assert parse_version("1.10.3") == (1, 10, 3)
        assert parse_version("v22.4.0") == (22, 4, 0)
        assert parse_version("3") == (3,)

    @pytest.mark.parametrize("text", ["", None, "abc", "1.x", "1..2"])
    def test_parse_invalid(self, text):
        assert parse_version(text) is None

    @pytest.mark.parametrize("output,expected", [
        ("Python 3.12.3", "3.12.3"),
        ("Docker version 27.0.3, build 7d4bcd8", "27.0.3"),
        ("v22.4.0", "22.4.0"),
        ("pip 24.0 from /usr/lib/python3/dist-packages/pip (python 3.12)", "24.0"),
        ("9", "9"),
        ("no version here", None),
        ("", None),
    ])
    def test_extract_version(self, output, expected):
        assert extract_version(output) == expected

    def test_is_valid_version(self):
        assert is_valid_version("3.12")
        assert is_valid_version("16")
        assert not is_valid_version("latest")
        assert not is_valid_version("3.12-rc1")


class TestInstallVersion:

    def test_latest_resolves_to_fallback(self):
        for family, fallback in FALLBACK_VERSIONS.items():
            assert resolve_install_version(family, "latest") == fallback

    def test_concrete_version_is_kept(self):
        assert resolve_install_version("python", "3.11") == "3.11"

    def test_major(self):
        assert major("22.4.1") == "22"
        assert major("16") == "16"
