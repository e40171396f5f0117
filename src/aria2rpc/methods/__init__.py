"""
Typed aria2 method families.

Each family is a mixin relying on the ``_call`` coroutine of ``Aria2Client``.
"""

from aria2rpc.methods.download import DownloadMethods
from aria2rpc.methods.status import StatusMethods
from aria2rpc.methods.options import GlobalMethods
from aria2rpc.methods.system import SystemMethods

__all__ = [
    "DownloadMethods",
    "StatusMethods",
    "GlobalMethods",
    "SystemMethods",
]
