"""Session, introspection and batching methods."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence

from aria2rpc.methods.validation import validate_gid
from aria2rpc.protocol.errors import Aria2Error
from aria2rpc.protocol.messages import encode_multicall_entry
from aria2rpc.records import VersionInfo

if TYPE_CHECKING:
    from aria2rpc.config import ClientConfig

MULTICALL_METHOD = "system.multicall"


class SystemMethods:
    """Server lifecycle, ``system.*`` introspection and ``multicall``."""

    config: "ClientConfig"

    _call: Callable[[str, list[Any]], Awaitable[Any]]

    async def get_version(self) -> VersionInfo:
        result = await self._call("aria2.getVersion", [])
        return VersionInfo.from_dict(result)

    async def shutdown(self) -> str:
        """Ask aria2 to shut down after finishing its current actions."""
        return await self._call("aria2.shutdown", [])

    async def force_shutdown(self) -> str:
        return await self._call("aria2.forceShutdown", [])

    async def save_session(self) -> str:
        """Write the session file configured with ``--save-session``."""
        return await self._call("aria2.saveSession", [])

    async def purge_download_result(self) -> str:
        return await self._call("aria2.purgeDownloadResult", [])

    async def remove_download_result(self, gid: str) -> str:
        return await self._call("aria2.removeDownloadResult", [validate_gid(gid)])

    async def list_methods(self) -> list[str]:
        return await self._call("system.listMethods", [])

    async def list_notifications(self) -> list[str]:
        return await self._call("system.listNotifications", [])

    async def multicall(
        self,
        calls: Sequence[tuple[str, Sequence[Any]]],
    ) -> list[Any]:
        """
        Run several methods in one round trip.

        Args:
            calls: ``(method, params)`` pairs, params without the token.

        Returns:
            One entry per call, in order. A successful call yields its
            result; a failed one yields aria2's fault object
            (``{"code": ..., "message": ...}``) unchanged.

        Raises:
            Aria2Error: VALIDATION for malformed input, PROTOCOL_FAULT if
                the reply does not line up with the calls.
        """
        if not isinstance(calls, (list, tuple)):
            raise Aria2Error.validation("Multicall expects a list of (method, params)")
        if not calls:
            return []

        secret = self.config.secret
        entries = []
        for index, call in enumerate(calls):
            if not isinstance(call, (list, tuple)) or len(call) != 2:
                raise Aria2Error.validation(
                    f"Multicall entry {index} must be a (method, params) pair"
                )
            method, params = call
            if not isinstance(method, str) or not method:
                raise Aria2Error.validation(
                    f"Multicall entry {index} has no method name"
                )
            if method == MULTICALL_METHOD:
                raise Aria2Error.validation("Multicall cannot be nested")
            if not isinstance(params, (list, tuple)):
                raise Aria2Error.validation(
                    f"Multicall entry {index} params must be a list"
                )
            entries.append(encode_multicall_entry(method, params, secret))

        result = await self._call(MULTICALL_METHOD, [entries])

        if not isinstance(result, list) or len(result) != len(entries):
            raise Aria2Error.protocol(
                f"Multicall returned {_describe(result)} for {len(entries)} calls",
                data=result,
            )

        outcomes = []
        for index, slot in enumerate(result):
            if isinstance(slot, list) and len(slot) == 1:
                outcomes.append(slot[0])
            elif isinstance(slot, dict):
                outcomes.append(slot)
            else:
                raise Aria2Error.protocol(
                    f"Malformed multicall result at index {index}",
                    data=slot,
                )
        return outcomes


def _describe(result: Any) -> str:
    if isinstance(result, list):
        return f"{len(result)} results"
    return type(result).__name__
