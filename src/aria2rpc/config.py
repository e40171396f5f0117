"""Client configuration and config file loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import orjson

from aria2rpc.protocol.errors import Aria2Error

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "ws://localhost:6800/jsonrpc"
DEFAULT_TIMEOUT_MS = 10_000
SOCKET_SCHEMES = ("ws", "wss")

# Config file locations
CONFIG_FILENAME = "client.json"
GLOBAL_CONFIG = Path.home() / ".aria2rpc" / CONFIG_FILENAME
LOCAL_CONFIG_DIR = ".aria2rpc"
CONFIG_KEYS = ("endpoint", "secret", "timeout", "headers")


@dataclass
class ClientConfig:
    """Connection settings for one aria2 client."""

    endpoint: str
    """WebSocket URL of the aria2 RPC endpoint (ws:// or wss://)."""

    secret: str | None = None
    """Value of aria2's --rpc-secret, sent as ``token:<secret>``."""

    timeout: int = DEFAULT_TIMEOUT_MS
    """Per-call timeout in milliseconds."""

    headers: dict[str, str] = field(default_factory=dict)
    """Extra headers sent with the WebSocket handshake."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not isinstance(self.endpoint, str) or not self.endpoint:
            raise Aria2Error.configuration("endpoint is required")
        parsed = urlparse(self.endpoint)
        if parsed.scheme not in SOCKET_SCHEMES:
            raise Aria2Error.configuration(
                f"endpoint must use ws:// or wss://, got: {self.endpoint}"
            )
        if not parsed.hostname:
            raise Aria2Error.configuration(
                f"endpoint has no host: {self.endpoint}"
            )

        if self.secret is not None and not isinstance(self.secret, str):
            raise Aria2Error.configuration("secret must be a string")

        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, int)
            or self.timeout <= 0
        ):
            raise Aria2Error.configuration(
                f"timeout must be a positive integer, got: {self.timeout!r}"
            )

        if not isinstance(self.headers, dict):
            raise Aria2Error.configuration("headers must be a mapping")
        for key, value in self.headers.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise Aria2Error.configuration(
                    "header keys and values must be strings"
                )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientConfig":
        """Create from a config dict, ignoring unknown keys."""
        return cls(
            endpoint=data.get("endpoint", DEFAULT_ENDPOINT),
            secret=data.get("secret"),
            timeout=data.get("timeout", DEFAULT_TIMEOUT_MS),
            headers=data.get("headers", {}),
        )

    def __repr__(self) -> str:
        secret = "***" if self.secret else None
        return (
            f"ClientConfig(endpoint={self.endpoint!r}, secret={secret!r}, "
            f"timeout={self.timeout}, headers={self.headers!r})"
        )


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: top level is not an object")
        return {}
    return data


def load_client_config(
    working_dir: Path | None = None,
    **overrides: Any,
) -> ClientConfig:
    """Load client settings from global and local config files.

    Global config (~/.aria2rpc/client.json) is loaded first.
    Local config ({working_dir}/.aria2rpc/client.json) overrides global.
    Keyword arguments that are not None override both.

    Raises:
        Aria2Error: CONFIGURATION kind if the merged settings are invalid
            or an override names an unknown setting.
    """
    unknown = sorted(set(overrides) - set(CONFIG_KEYS))
    if unknown:
        raise Aria2Error.configuration(
            f"Unknown setting(s): {', '.join(unknown)}; "
            f"expected one of: {', '.join(CONFIG_KEYS)}"
        )

    settings: dict[str, Any] = {}

    if GLOBAL_CONFIG.exists():
        settings.update(_read_config_file(GLOBAL_CONFIG))

    if working_dir:
        local_config = working_dir / LOCAL_CONFIG_DIR / CONFIG_FILENAME
        if local_config.exists():
            settings.update(_read_config_file(local_config))

    settings.update({k: v for k, v in overrides.items() if v is not None})
    return ClientConfig.from_dict(settings)
