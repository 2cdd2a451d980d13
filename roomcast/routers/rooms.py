from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db import get_db
from ..errors import Unauthorized
from ..realtime import Broadcaster, get_broadcaster
from ..schemas.room import RoomCreate, RoomJoinRequest
from ..services import moderation, room_directory
from ..services.serializers import serialize_room, serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@router.post("/create")
async def create_room(payload: RoomCreate, db: Session = Depends(get_db)):
    expected = get_settings().root_password
    if expected is not None and (payload.root_password or "").strip() != expected:
        logger.warning("Room creation refused: invalid root credentials")
        raise Unauthorized("Authorization Protocol Failed. Invalid root credentials.")
    room = room_directory.create_room(db, payload.name)
    return JSONResponse(
        {"message": "Room created successfully", "room": serialize_room(room)},
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/join")
async def join_room(payload: RoomJoinRequest, db: Session = Depends(get_db)):
    user = room_directory.request_join(db, payload.username, payload.room_code)
    return JSONResponse(
        {"message": "Join request sent. Waiting for approval.", "user": serialize_user(user)},
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/{room_code}/pending-users")
async def list_pending_users(room_code: str, db: Session = Depends(get_db)):
    room = room_directory.resolve_by_code(db, room_directory.normalize_code(room_code))
    return JSONResponse([serialize_user(u) for u in room_directory.pending_users(db, room)])


@router.get("/{room_code}/all-users")
async def list_all_users(room_code: str, db: Session = Depends(get_db)):
    room = room_directory.resolve_by_code(db, room_directory.normalize_code(room_code))
    return JSONResponse([serialize_user(u) for u in room_directory.all_users(db, room)])


@router.patch("/approve-user/{user_id}")
async def approve_user(
    user_id: int,
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    approval = moderation.approve_user(db, user_id)
    await broadcaster.notify_user_approved(db, approval)
    return JSONResponse({"message": "User approved successfully", "user": approval.user})


@router.delete("/kick-user/{user_id}")
async def kick_user(
    user_id: int,
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    await broadcaster.kick_user(db, user_id)
    return JSONResponse({"message": "User kicked successfully"})


@router.delete("/{room_code}")
async def delete_room(
    room_code: str,
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    deleted = await broadcaster.delete_room(db, room_code)
    return JSONResponse({"success": True, "roomCode": deleted.room_code})
