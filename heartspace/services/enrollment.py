"""
Session enrollment: creation, join, leave and delete under a capacity ceiling.

Invariants held here:

* a session never has more attendee rows than ``max_attendees``
* the creator is enrolled from creation and can never leave
* a user holds at most one membership per session

The store is the arbiter for all three. Joins run a conditional
INSERT ... SELECT guarded by a row count, after locking the session row, and
the (session_id, user_id) unique constraint rejects duplicates.
"""
from datetime import date as date_type, datetime, timezone
from typing import List

from sqlalchemy import delete, func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession, selectinload

from ..database import INT32_MAX, atomic
from ..errors import (
    AlreadyMemberError,
    CapacityExceededError,
    ForbiddenOperationError,
    NotFoundError,
    ValidationError,
)
from ..logging_config import get_logger
from ..models.session import Session, SessionAttendee
from ..models.user import User
from .ownership import ensure_owner, get_or_404, is_storable_id

logger = get_logger("sessions")


class EnrollmentService:
    """Stateless service bound to one database session."""

    def __init__(self, db: DBSession):
        self.db = db

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def _query(self):
        return self.db.query(Session).options(
            selectinload(Session.creator),
            selectinload(Session.attendees).selectinload(SessionAttendee.user),
        )

    def list_sessions(self) -> List[Session]:
        """All sessions, newest first, with creator and attendees loaded."""
        return self._query().order_by(Session.created_at.desc(), Session.id.desc()).all()

    def get_session(self, session_id: int) -> Session:
        if not is_storable_id(session_id):
            raise NotFoundError("Session")
        session = self._query().filter(Session.id == session_id).first()
        if session is None:
            raise NotFoundError("Session")
        return session

    def attendee_count(self, session_id: int) -> int:
        return self.db.scalar(
            select(func.count(SessionAttendee.id)).where(SessionAttendee.session_id == session_id)
        )

    def _is_member(self, session_id: int, user_id: int) -> bool:
        return self.db.scalar(
            select(SessionAttendee.id).where(
                SessionAttendee.session_id == session_id,
                SessionAttendee.user_id == user_id,
            )
        ) is not None

    def _lock_session(self, session_id: int) -> Session:
        """Fetch the session row FOR UPDATE so joins on it serialize."""
        if not is_storable_id(session_id):
            raise NotFoundError("Session")
        session = self.db.scalars(
            select(Session).where(Session.id == session_id).with_for_update()
        ).first()
        if session is None:
            raise NotFoundError("Session")
        return session

    # ------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------

    def create_session(self, creator: User, title: str, date: date_type, time: str, max_attendees: int) -> Session:
        """Create a session with its creator already enrolled."""
        is_int = isinstance(max_attendees, int) and not isinstance(max_attendees, bool)
        if not is_int or not 0 < max_attendees <= INT32_MAX:
            raise ValidationError(f"maxAttendees must be an integer between 1 and {INT32_MAX}")
        if not title or not title.strip():
            raise ValidationError("title is required")
        if not time or not time.strip():
            raise ValidationError("time is required")

        with atomic(self.db, "create_session"):
            session = Session(
                title=title.strip(),
                date=date,
                time=time.strip(),
                max_attendees=max_attendees,
                user_id=creator.id,
            )
            session.attendees.append(SessionAttendee(user_id=creator.id))
            self.db.add(session)
            self.db.flush()
            session_id = session.id

        logger.info("Session created", session_id=session_id, user_id=creator.id, max_attendees=max_attendees)
        return self.get_session(session_id)

    def join(self, session_id: int, user: User) -> Session:
        """Enroll ``user``; rejects duplicates and full sessions."""
        log = logger.bind(session_id=session_id, user_id=user.id)
        with atomic(self.db, "join_session"):
            self._lock_session(session_id)

            if self._is_member(session_id, user.id):
                raise AlreadyMemberError()

            seated = (
                select(func.count(SessionAttendee.id))
                .where(SessionAttendee.session_id == session_id)
                .scalar_subquery()
            )
            capacity = (
                select(Session.max_attendees)
                .where(Session.id == session_id)
                .scalar_subquery()
            )
            attendees = SessionAttendee.__table__
            stmt = insert(attendees).from_select(
                ["session_id", "user_id", "joined_at"],
                select(
                    literal(session_id),
                    literal(user.id),
                    literal(datetime.now(timezone.utc), attendees.c.joined_at.type),
                ).where(seated < capacity),
            )
            try:
                with self.db.begin_nested():
                    inserted = self.db.execute(stmt).rowcount
            except IntegrityError as e:
                # Only the membership unique constraint means "already joined";
                # anything else (e.g. the user row vanished) is a store failure
                if self._is_member(session_id, user.id):
                    raise AlreadyMemberError() from e
                raise

            if inserted == 0:
                log.warning("Join rejected, session full")
                raise CapacityExceededError()

        log.info("Joined session")
        return self.get_session(session_id)

    def leave(self, session_id: int, user: User) -> Session:
        """Remove ``user``'s membership. Leaving without being a member is a no-op."""
        with atomic(self.db, "leave_session"):
            session = get_or_404(self.db, Session, session_id, "Session")
            if session.user_id == user.id:
                raise ForbiddenOperationError("Session creator cannot leave the session")

            removed = self.db.execute(
                delete(SessionAttendee).where(
                    SessionAttendee.session_id == session_id,
                    SessionAttendee.user_id == user.id,
                )
            ).rowcount

        if removed:
            logger.info("Left session", session_id=session_id, user_id=user.id)
        return self.get_session(session_id)

    def delete_session(self, session_id: int, user: User) -> None:
        """Delete a session and every attendee row in one transaction."""
        with atomic(self.db, "delete_session"):
            session = get_or_404(self.db, Session, session_id, "Session")
            ensure_owner(session, user, "delete", "session")

            self.db.execute(delete(SessionAttendee).where(SessionAttendee.session_id == session_id))
            self.db.execute(delete(Session).where(Session.id == session_id))

        self.db.expire_all()
        logger.info("Session deleted", session_id=session_id, user_id=user.id)


def is_full(session: Session) -> bool:
    """Full means at or over capacity; over should never happen but counts as full."""
    return len(session.attendees) >= session.max_attendees

