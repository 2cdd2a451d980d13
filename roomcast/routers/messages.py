from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..realtime import Broadcaster, get_broadcaster
from ..services import moderation, room_directory

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("/approved/{room_code}")
async def list_approved(room_code: str, db: Session = Depends(get_db)):
    room = room_directory.resolve_by_code(db, room_directory.normalize_code(room_code))
    return JSONResponse(moderation.approved_messages(db, room))


@router.delete("/delete/{message_id}")
async def delete_message(
    message_id: int,
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    result = moderation.delete(db, message_id)
    await broadcaster.notify_message_deleted(result)
    return JSONResponse({"success": True})
