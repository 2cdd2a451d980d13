from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, func

from . import Base

user_role_enum = Enum("superadmin", "admin", "user", name="user_role")
user_status_enum = Enum("pending", "approved", name="user_status")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(80), nullable=False)
    role = Column(user_role_enum, nullable=False, default="user")
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(user_status_enum, nullable=False, default="pending")
    is_online = Column(Boolean, nullable=False, default=False)
    socket_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
