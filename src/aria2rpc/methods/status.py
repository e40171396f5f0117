"""Status query methods."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from aria2rpc.methods.validation import (
    validate_gid,
    validate_keys,
    validate_pagination,
)
from aria2rpc.records import DownloadStatus, parse_status_list


class StatusMethods:
    """``aria2.tell*`` queries, returning ``DownloadStatus`` records."""

    _call: Callable[[str, list[Any]], Awaitable[Any]]

    async def tell_status(
        self,
        gid: str,
        keys: list[str] | None = None,
    ) -> DownloadStatus:
        """
        Return progress information for one download.

        Args:
            gid: Download GID.
            keys: Optional list of keys to fetch; other attributes stay None.
        """
        params: list[Any] = [validate_gid(gid)]
        if keys is not None:
            params.append(validate_keys(keys))
        result = await self._call("aria2.tellStatus", params)
        return DownloadStatus.from_dict(result, partial=keys is not None)

    async def tell_active(self, keys: list[str] | None = None) -> list[DownloadStatus]:
        params: list[Any] = []
        if keys is not None:
            params.append(validate_keys(keys))
        result = await self._call("aria2.tellActive", params)
        return parse_status_list(result, partial=keys is not None)

    async def tell_waiting(
        self,
        offset: int,
        num: int,
        keys: list[str] | None = None,
    ) -> list[DownloadStatus]:
        """Return up to ``num`` waiting downloads starting at ``offset``."""
        return await self._tell_page("aria2.tellWaiting", offset, num, keys)

    async def tell_stopped(
        self,
        offset: int,
        num: int,
        keys: list[str] | None = None,
    ) -> list[DownloadStatus]:
        """Return up to ``num`` stopped downloads starting at ``offset``."""
        return await self._tell_page("aria2.tellStopped", offset, num, keys)

    async def _tell_page(
        self,
        method: str,
        offset: int,
        num: int,
        keys: list[str] | None,
    ) -> list[DownloadStatus]:
        validate_pagination(offset, num)
        params: list[Any] = [offset, num]
        if keys is not None:
            params.append(validate_keys(keys))
        result = await self._call(method, params)
        return parse_status_list(result, partial=keys is not None)
