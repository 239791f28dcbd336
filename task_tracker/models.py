from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, text

from .database import Base

PRIORITIES = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"


class Task(Base):
    __tablename__ = "tasks"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    completed = Column(Boolean, nullable=False, default=False, server_default=text("0"))
    priority = Column(String, nullable=False, default=DEFAULT_PRIORITY, server_default=DEFAULT_PRIORITY)
    created_at = Column("createdAt", DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column("updatedAt", DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    def __repr__(self):
        return f"Task(id={self.id}, title={self.title!r}, priority={self.priority}, completed={self.completed})"
