"""Unit tests for KEY=VALUE helper output parsing."""

from diskbridge.utils.keyvalue import get_bool, get_error_message, is_ok, parse_key_values


class TestParseKeyValues:
    """Tests for parse_key_values function."""

    def test_keys_are_case_insensitive(self) -> None:
        """Lookups ignore key case."""
        values = parse_key_values("DistroName=Ubuntu")

        assert values["distroname"] == "Ubuntu"
        assert values.get("DISTRONAME") == "Ubuntu"
        assert "DistroName" in values

    def test_only_first_equals_splits(self) -> None:
        """Values may contain '='."""
        values = parse_key_values("ErrorMessage=a=b=c")
        assert values["ErrorMessage"] == "a=b=c"

    def test_skips_noise_lines(self) -> None:
        """Blank lines, lines without '=' and empty keys are ignored."""
        values = parse_key_values("\nWARNING: something\n=orphan\nSTATUS=OK\n")

        assert dict(values) == {"status": "OK"}

    def test_empty_output(self) -> None:
        """None and whitespace produce an empty mapping."""
        assert parse_key_values(None) == {}
        assert parse_key_values("   ") == {}

    def test_windows_line_endings(self) -> None:
        """CRLF output parses cleanly."""
        values = parse_key_values("STATUS=OK\r\nDiskIndex=2\r\n")
        assert values["DiskIndex"] == "2"


class TestAccessors:
    """Tests for is_ok, get_error_message and get_bool."""

    def test_is_ok(self) -> None:
        """STATUS=OK in any case is success."""
        assert is_ok(parse_key_values("status=ok"))
        assert not is_ok(parse_key_values("STATUS=ERROR"))
        assert not is_ok(parse_key_values(""))

    def test_error_message_empty_is_none(self) -> None:
        """An empty ErrorMessage counts as absent."""
        assert get_error_message(parse_key_values("ErrorMessage=")) is None

    def test_get_bool(self) -> None:
        """Flags parse as booleans; absent flags are None."""
        values = parse_key_values("A=true\nB=False\nC=1")

        assert get_bool(values, "A") is True
        assert get_bool(values, "B") is False
        assert get_bool(values, "C") is True
        assert get_bool(values, "D") is None
