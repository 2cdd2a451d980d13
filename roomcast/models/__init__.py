from sqlalchemy.orm import declarative_base

Base = declarative_base()

from .message import Message  # noqa: E402,F401
from .room import Room  # noqa: E402,F401
from .user import User  # noqa: E402,F401
