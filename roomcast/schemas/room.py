from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, validator


class RoomCreate(BaseModel):
    name: str = ""
    root_password: Optional[str] = Field(None, alias="rootPassword")

    @validator("name", pre=True)
    def name_strip(cls, value: str | None) -> str:
        return (value or "").strip()


class RoomJoinRequest(BaseModel):
    username: str = ""
    room_code: str = Field("", alias="roomCode")

    @validator("username", "room_code", pre=True)
    def strip_fields(cls, value: str | None) -> str:
        return (value or "").strip()
