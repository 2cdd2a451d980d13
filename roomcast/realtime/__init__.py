from fastapi import Request

from .handlers import Broadcaster
from .registry import Connection, SessionRegistry

__all__ = ["Broadcaster", "Connection", "SessionRegistry", "get_broadcaster"]


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster
