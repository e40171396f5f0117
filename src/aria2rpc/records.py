"""Typed records rebuilt from aria2 results.

aria2 sends every number as a decimal string; the records convert those to
``int`` and keep the original mapping in ``raw``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from aria2rpc.protocol.errors import Aria2Error


class DownloadState(Enum):
    """Value of the ``status`` key of a download."""

    ACTIVE = "active"
    WAITING = "waiting"
    PAUSED = "paused"
    ERROR = "error"
    COMPLETE = "complete"
    REMOVED = "removed"


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise Aria2Error.protocol(f"{where} must be an object", data=value)
    return value


def _require_list(value: Any, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise Aria2Error.protocol(f"{where} must be an array", data=value)
    return value


def _string(data: dict[str, Any], key: str, where: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise Aria2Error.protocol(f"{where}.{key} must be a string", data=value)
    return value


def _integer(data: dict[str, Any], key: str, where: str) -> int | None:
    value = _string(data, key, where)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise Aria2Error.protocol(
            f"{where}.{key} must be a decimal string", data=value
        )


def _flag(data: dict[str, Any], key: str, where: str) -> bool | None:
    value = _string(data, key, where)
    if value is None:
        return None
    return value == "true"


def _strings(value: Any, where: str) -> list[str]:
    items = _require_list(value, where)
    if not all(isinstance(item, str) for item in items):
        raise Aria2Error.protocol(f"{where} must contain only strings", data=value)
    return list(items)


@dataclass
class UriInfo:
    """One source URI of a file."""

    uri: str
    status: str
    """``used`` or ``waiting``."""

    @classmethod
    def from_dict(cls, data: Any, where: str = "uri") -> "UriInfo":
        data = _require_mapping(data, where)
        uri = _string(data, "uri", where)
        status = _string(data, "status", where)
        if uri is None:
            raise Aria2Error.protocol(f"{where}.uri is missing", data=data)
        if status not in ("used", "waiting"):
            raise Aria2Error.protocol(
                f"{where}.status must be 'used' or 'waiting'", data=data
            )
        return cls(uri=uri, status=status)


@dataclass
class FileInfo:
    """One file of a download."""

    index: int
    path: str
    length: int
    completed_length: int
    selected: bool
    uris: list[UriInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, where: str = "file") -> "FileInfo":
        data = _require_mapping(data, where)
        for key in ("index", "path", "length", "completedLength", "selected"):
            if key not in data:
                raise Aria2Error.protocol(f"{where}.{key} is missing", data=data)
        uris = _require_list(data.get("uris", []), f"{where}.uris")
        return cls(
            index=_integer(data, "index", where),
            path=_string(data, "path", where),
            length=_integer(data, "length", where),
            completed_length=_integer(data, "completedLength", where),
            selected=_flag(data, "selected", where),
            uris=[
                UriInfo.from_dict(uri, f"{where}.uris[{i}]")
                for i, uri in enumerate(uris)
            ],
        )

    @property
    def progress(self) -> float | None:
        """Completed fraction between 0 and 1, if the length is known."""
        if self.length:
            return self.completed_length / self.length
        return None


@dataclass
class BitTorrentInfo:
    """Torrent metadata, present for BitTorrent downloads only."""

    announce_list: list[list[str]] = field(default_factory=list)
    comment: str | None = None
    creation_date: int | None = None
    mode: str | None = None
    name: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "BitTorrentInfo":
        data = _require_mapping(data, "bittorrent")
        announce = _require_list(data.get("announceList", []), "bittorrent.announceList")
        info = data.get("info")
        name = None
        if isinstance(info, dict) and isinstance(info.get("name"), str):
            name = info["name"]
        # an integer on the wire, unlike every other numeric field
        creation_date = data.get("creationDate")
        if isinstance(creation_date, str) and creation_date.isdigit():
            creation_date = int(creation_date)
        elif not isinstance(creation_date, int) or isinstance(creation_date, bool):
            creation_date = None
        return cls(
            announce_list=[
                _strings(tier, f"bittorrent.announceList[{i}]")
                for i, tier in enumerate(announce)
            ],
            comment=_string(data, "comment", "bittorrent"),
            creation_date=creation_date,
            mode=_string(data, "mode", "bittorrent"),
            name=name,
        )


# Keys aria2 always returns when tellStatus is called without a key filter
REQUIRED_STATUS_KEYS = (
    "gid",
    "status",
    "totalLength",
    "completedLength",
    "uploadLength",
    "downloadSpeed",
    "uploadSpeed",
    "connections",
    "dir",
    "files",
)


@dataclass
class DownloadStatus:
    """
    Progress information for one download (``aria2.tellStatus``).

    When the status was requested with a key filter only the requested
    attributes are populated; the rest stay ``None``.
    """

    gid: str | None = None
    status: DownloadState | None = None
    total_length: int | None = None
    completed_length: int | None = None
    upload_length: int | None = None
    bitfield: str | None = None
    download_speed: int | None = None
    upload_speed: int | None = None
    info_hash: str | None = None
    num_seeders: int | None = None
    seeder: bool | None = None
    piece_length: int | None = None
    num_pieces: int | None = None
    connections: int | None = None
    error_code: str | None = None
    error_message: str | None = None
    followed_by: list[str] = field(default_factory=list)
    following: str | None = None
    belongs_to: str | None = None
    dir: str | None = None
    files: list[FileInfo] = field(default_factory=list)
    bittorrent: BitTorrentInfo | None = None
    verified_length: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any, partial: bool = False) -> "DownloadStatus":
        """
        Parse a tellStatus-style result.

        Args:
            data: The raw result mapping.
            partial: True when a key filter was used, which relaxes the
                required-key check.
        """
        where = "status"
        data = _require_mapping(data, where)

        if not partial:
            for key in REQUIRED_STATUS_KEYS:
                if key not in data:
                    raise Aria2Error.protocol(
                        f"Missing required field: {key}", data=data
                    )

        state = _string(data, "status", where)
        if state is not None:
            try:
                state = DownloadState(state)
            except ValueError:
                raise Aria2Error.protocol(f"Invalid status value: {state}", data=data)

        bittorrent = data.get("bittorrent")
        files = _require_list(data.get("files", []), "status.files")

        return cls(
            gid=_string(data, "gid", where),
            status=state,
            total_length=_integer(data, "totalLength", where),
            completed_length=_integer(data, "completedLength", where),
            upload_length=_integer(data, "uploadLength", where),
            bitfield=_string(data, "bitfield", where),
            download_speed=_integer(data, "downloadSpeed", where),
            upload_speed=_integer(data, "uploadSpeed", where),
            info_hash=_string(data, "infoHash", where),
            num_seeders=_integer(data, "numSeeders", where),
            seeder=_flag(data, "seeder", where),
            piece_length=_integer(data, "pieceLength", where),
            num_pieces=_integer(data, "numPieces", where),
            connections=_integer(data, "connections", where),
            error_code=_string(data, "errorCode", where),
            error_message=_string(data, "errorMessage", where),
            followed_by=_strings(data.get("followedBy", []), "status.followedBy"),
            following=_string(data, "following", where),
            belongs_to=_string(data, "belongsTo", where),
            dir=_string(data, "dir", where),
            files=[
                FileInfo.from_dict(item, f"status.files[{i}]")
                for i, item in enumerate(files)
            ],
            bittorrent=BitTorrentInfo.from_dict(bittorrent) if bittorrent else None,
            verified_length=_integer(data, "verifiedLength", where),
            raw=data,
        )

    @property
    def progress(self) -> float | None:
        """Completed fraction between 0 and 1, if the length is known."""
        if self.total_length and self.completed_length is not None:
            return self.completed_length / self.total_length
        return None

    @property
    def is_finished(self) -> bool:
        return self.status in (
            DownloadState.COMPLETE,
            DownloadState.ERROR,
            DownloadState.REMOVED,
        )


def parse_status_list(data: Any, partial: bool = False) -> list[DownloadStatus]:
    items = _require_list(data, "status list")
    statuses = []
    for index, item in enumerate(items):
        try:
            statuses.append(DownloadStatus.from_dict(item, partial=partial))
        except Aria2Error as e:
            raise Aria2Error.protocol(
                f"Invalid download status at index {index}: {e.message}",
                data=item,
            ) from e
    return statuses


@dataclass
class GlobalStat:
    """Global traffic and queue counters (``aria2.getGlobalStat``)."""

    download_speed: int
    upload_speed: int
    num_active: int
    num_waiting: int
    num_stopped: int
    num_stopped_total: int

    @classmethod
    def from_dict(cls, data: Any) -> "GlobalStat":
        where = "globalStat"
        data = _require_mapping(data, where)
        values = {}
        for attr, key in (
            ("download_speed", "downloadSpeed"),
            ("upload_speed", "uploadSpeed"),
            ("num_active", "numActive"),
            ("num_waiting", "numWaiting"),
            ("num_stopped", "numStopped"),
            ("num_stopped_total", "numStoppedTotal"),
        ):
            value = _integer(data, key, where)
            if value is None:
                raise Aria2Error.protocol(f"Missing required field: {key}", data=data)
            values[attr] = value
        return cls(**values)


@dataclass
class VersionInfo:
    """Server version and compiled-in features (``aria2.getVersion``)."""

    version: str
    enabled_features: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "VersionInfo":
        data = _require_mapping(data, "version")
        version = _string(data, "version", "version")
        if version is None:
            raise Aria2Error.protocol("Missing required field: version", data=data)
        return cls(
            version=version,
            enabled_features=_strings(
                data.get("enabledFeatures", []), "version.enabledFeatures"
            ),
        )

    def supports(self, feature: str) -> bool:
        return feature in self.enabled_features
