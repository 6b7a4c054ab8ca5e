from .user import User
from .setting import Setting

__all__ = ["User", "Setting"]
