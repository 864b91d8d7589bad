from sqlalchemy import Column, Integer, String, JSON
from orstock.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(200))  # plaintext, compared by equality at login
    display = Column(String(200))
    role = Column(String(20))  # "admin" | "operator" | anything else is read-only
    last_login = Column(String(40))  # ISO string in local wall-clock time
    extra = Column(JSON, default=dict)

    def to_dict(self, include_password: bool = False) -> dict:
        """Wire representation: known fields plus whatever was inserted alongside them."""
        data = dict(self.extra or {})
        data.update(
            {
                "username": self.username,
                "display": self.display,
                "role": self.role,
                "lastLogin": self.last_login,
            }
        )
        if include_password:
            data["password"] = self.password
        return data
