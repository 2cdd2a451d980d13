from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Text, func

from . import Base

message_status_enum = Enum("pending", "approved", name="message_status")


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(message_status_enum, nullable=False, default="pending")
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
