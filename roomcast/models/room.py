from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, func

from . import Base

ROOM_CODE_LENGTH = 6


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True)
    room_code = Column(String(ROOM_CODE_LENGTH), unique=True, nullable=False, index=True)
    name = Column(String(120), nullable=False)
    # owner reference only; users are deleted before their room
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
