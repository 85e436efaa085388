from .base import Base
from .user import User
from .workshop import Workshop
from .registration import Registration
from .setting import Setting
from .reminder import SentReminder

__all__ = ["Base","User","Workshop","Registration","Setting","SentReminder"]
