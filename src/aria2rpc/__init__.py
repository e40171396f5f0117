"""
aria2rpc: typed asyncio client for aria2's JSON-RPC interface over WebSocket.

Submodules:
- protocol: envelope codec, error taxonomy, phase machine, request correlation
- transport: the WebSocket channel
- methods: validation and the typed method families
- records: typed views of aria2 results
- config: client settings and config file loading
"""

from aria2rpc.client import Aria2Client
from aria2rpc.config import (
    DEFAULT_ENDPOINT,
    DEFAULT_TIMEOUT_MS,
    ClientConfig,
    load_client_config,
)
from aria2rpc.protocol import (
    Aria2Error,
    ConnectionPhase,
    ErrorKind,
    NOTIFICATION_EVENTS,
    RPCClient,
)
from aria2rpc.records import (
    BitTorrentInfo,
    DownloadState,
    DownloadStatus,
    FileInfo,
    GlobalStat,
    UriInfo,
    VersionInfo,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "Aria2Client",
    "RPCClient",
    # Config
    "ClientConfig",
    "load_client_config",
    "DEFAULT_ENDPOINT",
    "DEFAULT_TIMEOUT_MS",
    # Errors
    "Aria2Error",
    "ErrorKind",
    # Connection
    "ConnectionPhase",
    "NOTIFICATION_EVENTS",
    # Records
    "DownloadState",
    "DownloadStatus",
    "FileInfo",
    "UriInfo",
    "BitTorrentInfo",
    "GlobalStat",
    "VersionInfo",
]
