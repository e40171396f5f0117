"""Argument validation and formatting for aria2 methods.

Every check here raises ``Aria2Error`` of kind VALIDATION before anything is
sent on the wire.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Mapping
from urllib.parse import urlparse

from aria2rpc.protocol.errors import Aria2Error

GID_PATTERN = re.compile(r"^[0-9a-fA-F]{16}$")

# aria2 refuses to page more than this many entries at once
MAX_PAGE_SIZE = 1000

NUMERIC_OPTIONS = frozenset(
    {
        "split",
        "max-connection-per-server",
        "max-concurrent-downloads",
        "bt-max-peers",
        "bt-max-open-files",
        "bt-tracker-connect-timeout",
        "bt-tracker-interval",
        "bt-tracker-timeout",
        "bt-stop-timeout",
        "seed-ratio",
        "seed-time",
        "dht-message-timeout",
        "rpc-listen-port",
        "timeout",
        "retry-wait",
        "server-stat-timeout",
        "save-session-interval",
    }
)

BOOLEAN_OPTIONS = frozenset(
    {
        "continue",
        "check-integrity",
        "allow-overwrite",
        "auto-file-renaming",
        "conditional-get",
        "parameterized-uri",
        "remote-time",
        "reuse-uri",
        "bt-seed-unverified",
        "bt-hash-check-seed",
        "follow-torrent",
        "enable-dht",
        "enable-dht6",
        "enable-peer-exchange",
        "rpc-listen-all",
        "rpc-save-upload-metadata",
        "rpc-secure",
        "optimize-concurrent-downloads",
    }
)

STRING_OPTIONS = frozenset(
    {
        "dir",
        "out",
        "min-split-size",
        "max-download-limit",
        "referer",
        "user-agent",
        "http-proxy",
        "https-proxy",
        "ftp-proxy",
        "all-proxy",
        "no-proxy",
        "proxy-method",
        "uri-selector",
        "server-stat-of",
        "server-stat-if",
        "bt-request-peer-speed-limit",
        "bt-max-upload-limit",
        "listen-port",
        "dht-listen-port",
        "dht-entry-point",
        "dht-entry-point6",
        "dht-file-path",
        "dht-file-path6",
        "peer-id-prefix",
        "rpc-max-request-size",
        "log",
        "max-overall-download-limit",
        "max-overall-upload-limit",
        "save-session",
    }
)

LOG_LEVELS = ("debug", "info", "notice", "warn", "error")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def validate_gid(gid: Any) -> str:
    """Check that ``gid`` is a 16 character hexadecimal string."""
    if not _is_non_empty_string(gid):
        raise Aria2Error.validation("GID must be a non-empty string")
    if not GID_PATTERN.match(gid):
        raise Aria2Error.validation(
            f"Invalid GID format: {gid}. Expected 16-character hexadecimal string"
        )
    return gid


def validate_uris(uris: Any) -> list[str]:
    """Check for a non-empty list of URIs that each carry a scheme."""
    if not isinstance(uris, (list, tuple)) or len(uris) == 0:
        raise Aria2Error.validation("URIs must be a non-empty list")

    for uri in uris:
        if not _is_non_empty_string(uri):
            raise Aria2Error.validation("All URIs must be non-empty strings")
        if not urlparse(uri).scheme:
            raise Aria2Error.validation(f"Invalid URI format: {uri}")
    return list(uris)


def validate_keys(keys: Any) -> list[str]:
    if not isinstance(keys, (list, tuple)):
        raise Aria2Error.validation("Keys must be a list of strings")
    if len(keys) == 0:
        raise Aria2Error.validation("Keys list cannot be empty")
    for key in keys:
        if not _is_non_empty_string(key):
            raise Aria2Error.validation("All keys must be non-empty strings")
    return list(keys)


def validate_pagination(offset: Any, num: Any) -> None:
    if not _is_int(offset) or offset < 0:
        raise Aria2Error.validation("Offset must be a non-negative integer")
    if not _is_int(num) or num <= 0:
        raise Aria2Error.validation("Number must be a positive integer")
    if num > MAX_PAGE_SIZE:
        raise Aria2Error.validation(f"Number cannot exceed {MAX_PAGE_SIZE}")


def encode_binary(data: Any, label: str) -> str:
    """
    Prepare torrent or metalink content for the wire.

    ``bytes`` are base64 encoded; a ``str`` must already be valid base64.
    """
    if isinstance(data, (bytes, bytearray)):
        return base64.b64encode(bytes(data)).decode("ascii")

    if isinstance(data, str):
        try:
            base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise Aria2Error.validation(f"Invalid base64 {label} data")
        return data

    raise Aria2Error.validation(
        f"{label.capitalize()} data must be a base64 string or bytes"
    )


def validate_option_value(key: str, value: Any) -> None:
    """Check one option value against the type aria2 expects for it."""
    if key in NUMERIC_OPTIONS:
        if not _is_number(value) or value < 0:
            raise Aria2Error.validation(
                f"Option '{key}' must be a non-negative number"
            )
    elif key in BOOLEAN_OPTIONS:
        if not isinstance(value, bool):
            raise Aria2Error.validation(f"Option '{key}' must be a boolean")
    elif key in STRING_OPTIONS:
        if not _is_non_empty_string(value):
            raise Aria2Error.validation(f"Option '{key}' must be a non-empty string")
    elif key == "log-level":
        if value not in LOG_LEVELS:
            raise Aria2Error.validation(
                f"Option 'log-level' must be one of: {', '.join(LOG_LEVELS)}"
            )
    elif key == "header":
        if not isinstance(value, (list, tuple)):
            raise Aria2Error.validation("Option 'header' must be a list")
        for header in value:
            if not _is_non_empty_string(header):
                raise Aria2Error.validation("All headers must be non-empty strings")


def validate_options(options: Any, allow_empty: bool = True) -> None:
    if not isinstance(options, Mapping):
        raise Aria2Error.validation("Options must be a mapping")
    if not allow_empty and len(options) == 0:
        raise Aria2Error.validation("Options cannot be empty")

    for key, value in options.items():
        if not isinstance(key, str):
            raise Aria2Error.validation("Option names must be strings")
        # None values are dropped when formatting
        if value is not None:
            validate_option_value(key, value)


def format_options(options: Mapping[str, Any]) -> dict[str, str | list[str]]:
    """
    Convert option values to the strings aria2 expects.

    Repeatable options such as ``header`` stay lists, one string per entry.
    """
    formatted: dict[str, str | list[str]] = {}
    for key, value in options.items():
        if value is None:
            continue
        if isinstance(value, bool):
            formatted[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            formatted[key] = [str(item) for item in value]
        else:
            formatted[key] = str(value)
    return formatted
