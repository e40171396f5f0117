"""Methods that add and control downloads."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping

from aria2rpc.protocol.errors import Aria2Error
from aria2rpc.methods.validation import (
    encode_binary,
    format_options,
    validate_gid,
    validate_options,
    validate_uris,
)


class DownloadMethods:
    """
    ``aria2.add*`` and the pause/remove family.

    Mixed into ``Aria2Client``; relies on its ``_call`` coroutine.
    """

    _call: Callable[[str, list[Any]], Awaitable[Any]]

    async def add_uri(
        self,
        uris: list[str],
        options: Mapping[str, Any] | None = None,
        position: int | None = None,
    ) -> str:
        """
        Add a download from one or more URIs pointing at the same resource.

        Args:
            uris: HTTP(S)/FTP/SFTP/magnet URIs.
            options: Per-download options such as ``dir`` or ``out``.
            position: Optional position in the waiting queue.

        Returns:
            The GID of the new download.
        """
        params: list[Any] = [validate_uris(uris)]
        params.extend(_trailing_options(options, position))
        return await self._call("aria2.addUri", params)

    async def add_torrent(
        self,
        torrent: bytes | str,
        uris: list[str] | None = None,
        options: Mapping[str, Any] | None = None,
        position: int | None = None,
    ) -> str:
        """
        Add a BitTorrent download from ``.torrent`` content.

        Args:
            torrent: Raw torrent bytes or a base64 string.
            uris: Optional web-seed URIs.
            options: Per-download options.
            position: Optional position in the waiting queue.
        """
        params: list[Any] = [encode_binary(torrent, "torrent")]
        web_seeds = validate_uris(uris) if uris else []
        trailing = _trailing_options(options, position)
        if web_seeds or trailing:
            params.append(web_seeds)
        params.extend(trailing)
        return await self._call("aria2.addTorrent", params)

    async def add_metalink(
        self,
        metalink: bytes | str,
        options: Mapping[str, Any] | None = None,
        position: int | None = None,
    ) -> list[str]:
        """Add downloads from metalink content. Returns one GID per entry."""
        params: list[Any] = [encode_binary(metalink, "metalink")]
        params.extend(_trailing_options(options, position))
        return await self._call("aria2.addMetalink", params)

    async def pause(self, gid: str) -> str:
        return await self._call("aria2.pause", [validate_gid(gid)])

    async def unpause(self, gid: str) -> str:
        return await self._call("aria2.unpause", [validate_gid(gid)])

    async def remove(self, gid: str) -> str:
        return await self._call("aria2.remove", [validate_gid(gid)])

    async def force_remove(self, gid: str) -> str:
        """Remove without waiting for tracker unregistration and similar."""
        return await self._call("aria2.forceRemove", [validate_gid(gid)])


def _trailing_options(
    options: Mapping[str, Any] | None,
    position: int | None,
) -> list[Any]:
    """Options and position are optional trailing params, in that order."""
    trailing: list[Any] = []
    if options is not None:
        validate_options(options)
    if position is not None:
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise Aria2Error.validation("Position must be a non-negative integer")
        trailing = [format_options(options or {}), position]
    elif options:
        trailing = [format_options(options)]
    return trailing
