"""Parsing of ``KEY=VALUE`` helper output.

Helper scripts report their outcome as one ``KEY=VALUE`` pair per line,
with ``STATUS=OK`` or ``STATUS=ERROR`` always present on success paths.
"""


class KeyValues(dict[str, str]):
    """Dictionary with case-insensitive string keys."""

    def __setitem__(self, key: str, value: str) -> None:
        super().__setitem__(key.lower(), value)

    def __getitem__(self, key: str) -> str:
        return super().__getitem__(key.lower())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and super().__contains__(key.lower())

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        return super().get(key.lower(), default)


def parse_key_values(output: str | None) -> KeyValues:
    """Parse helper output into a case-insensitive mapping.

    Lines without ``=`` or with an empty key are skipped. Only the first
    ``=`` separates key and value, so values may contain ``=``. Later
    duplicates win.

    Args:
        output: Raw stdout (or output file content) of a helper.

    Returns:
        Parsed key/value pairs.
    """
    result = KeyValues()
    if not output or not output.strip():
        return result

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        result[key] = value.strip()

    return result


def is_ok(values: dict[str, str]) -> bool:
    """Check for ``STATUS=OK`` (case-insensitive)."""
    status = values.get("STATUS")
    return status is not None and status.strip().upper() == "OK"


def get_error_message(values: dict[str, str]) -> str | None:
    """Return the ``ErrorMessage`` value, or None when absent or empty."""
    return values.get("ErrorMessage") or None


def get_bool(values: dict[str, str], key: str) -> bool | None:
    """Read a boolean flag (``true``/``false``/``1``/``0``); None when absent."""
    raw = values.get(key)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in ("true", "1", "yes")
