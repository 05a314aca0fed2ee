"""
Bookable sessions and their attendee relation.
"""
from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(50), nullable=False)  # display string, e.g. "18:00"
    max_attendees = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    creator = relationship("User", back_populates="sessions")
    attendees = relationship(
        "SessionAttendee",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[SessionAttendee.joined_at, SessionAttendee.id]",
    )

    __table_args__ = (
        CheckConstraint("max_attendees > 0", name="ck_sessions_max_attendees_positive"),
    )

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, title={self.title!r}, max_attendees={self.max_attendees})>"


class SessionAttendee(Base):
    __tablename__ = "session_attendees"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    session = relationship("Session", back_populates="attendees")
    user = relationship("User", back_populates="attendances")

    __table_args__ = (
        # One membership slot per user per session
        UniqueConstraint("session_id", "user_id", name="uq_session_attendees_session_user"),
    )
