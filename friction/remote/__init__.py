from __future__ import annotations

from .client import Failure, Moment, Ok, RemoteClient, RemoteResult, Unauthorized

__all__ = [
    "Failure",
    "Moment",
    "Ok",
    "RemoteClient",
    "RemoteResult",
    "Unauthorized",
]
