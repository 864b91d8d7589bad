from orstock.models.user import User
from orstock.models.locker import Locker

__all__ = ["User", "Locker"]
