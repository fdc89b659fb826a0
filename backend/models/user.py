"""User model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base
from backend.models.enums import Mode


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    first_name = Column(String)
    last_name = Column(String)
    department = Column(String)
    role = Column(String, nullable=False)  # admin/faculty/student
    mode = Column(String, nullable=False, default=Mode.ONLINE.value)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
