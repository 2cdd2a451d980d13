"""Payloads carried by client -> server real-time events.

Field names follow the wire contract (camelCase) so frames validate as sent.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, validator

Role = Literal["user", "admin", "broadcast", "superadmin"]


class JoinRoomPayload(BaseModel):
    roomCode: Optional[str] = None
    role: Role = "user"
    userId: Optional[int] = None
    password: Optional[str] = None


class SendMessagePayload(BaseModel):
    userId: int
    roomCode: str = ""
    content: Optional[str] = None


class MessageRefPayload(BaseModel):
    messageId: int


class UserActionPayload(BaseModel):
    userId: int
    roomCode: Optional[str] = None


class RoomCodePayload(BaseModel):
    roomCode: Optional[str] = None


class LeaveRoomPayload(BaseModel):
    roomCode: Optional[str] = None
    userId: Optional[int] = None

    @validator("roomCode", pre=True)
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not str(value).strip():
            return None
        return value
