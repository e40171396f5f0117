"""Global option and statistics methods."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping

from aria2rpc.methods.validation import format_options, validate_options
from aria2rpc.records import GlobalStat


class GlobalMethods:
    _call: Callable[[str, list[Any]], Awaitable[Any]]

    async def get_global_option(self) -> dict[str, Any]:
        """Return the server's global options, values as aria2 reports them."""
        return await self._call("aria2.getGlobalOption", [])

    async def change_global_option(self, options: Mapping[str, Any]) -> str:
        """
        Change global options at runtime.

        Values are validated by option name and sent as strings.

        Returns:
            ``"OK"`` on success.
        """
        validate_options(options, allow_empty=False)
        return await self._call("aria2.changeGlobalOption", [format_options(options)])

    async def get_global_stat(self) -> GlobalStat:
        result = await self._call("aria2.getGlobalStat", [])
        return GlobalStat.from_dict(result)
