"""
Session routes: create, list, join, leave and delete bookable sessions.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DBSession
from typing import List

from ..auth import get_required_user
from ..database import get_db
from ..models.session import Session, SessionAttendee
from ..models.user import User
from ..schemas.sessions import SessionCreate
from ..services.enrollment import EnrollmentService, is_full

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def get_enrollment_service(db: DBSession = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(db)


def attendee_to_dict(attendee: SessionAttendee) -> dict:
    return {
        "id": attendee.user_id,
        "name": attendee.user.display_name,
        "joinedAt": attendee.joined_at.isoformat() if attendee.joined_at else None,
    }


def session_to_dict(session: Session) -> dict:
    """Convert a Session model to a dictionary response."""
    return {
        "id": session.id,
        "title": session.title,
        "date": session.date.isoformat(),
        "time": session.time,
        "maxAttendees": session.max_attendees,
        "userId": session.user_id,
        "user": {"id": session.creator.id, "name": session.creator.display_name},
        "attendees": [attendee_to_dict(a) for a in session.attendees],
        "attendeeCount": len(session.attendees),
        "isFull": is_full(session),
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat() if session.updated_at else None,
    }


@router.post("", response_model=dict)
def create_session(
    session_data: SessionCreate,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_required_user),
):
    """Create a session; the creator is enrolled as its first attendee."""
    session = service.create_session(
        current_user,
        title=session_data.title,
        date=session_data.date,
        time=session_data.time,
        max_attendees=session_data.max_attendees,
    )
    return session_to_dict(session)


@router.get("", response_model=List[dict])
def list_sessions(service: EnrollmentService = Depends(get_enrollment_service)):
    """All sessions, newest first."""
    return [session_to_dict(s) for s in service.list_sessions()]


@router.get("/{session_id}", response_model=dict)
def get_session(session_id: int, service: EnrollmentService = Depends(get_enrollment_service)):
    return session_to_dict(service.get_session(session_id))


@router.post("/{session_id}/join", response_model=dict)
def join_session(
    session_id: int,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_required_user),
):
    """Join a session if it has room."""
    return session_to_dict(service.join(session_id, current_user))


@router.post("/{session_id}/leave", response_model=dict)
def leave_session(
    session_id: int,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_required_user),
):
    """Leave a session. The creator cannot leave; they delete instead."""
    return session_to_dict(service.leave(session_id, current_user))


@router.delete("/{session_id}")
def delete_session(
    session_id: int,
    service: EnrollmentService = Depends(get_enrollment_service),
    current_user: User = Depends(get_required_user),
):
    """Delete a session (must belong to current user)."""
    service.delete_session(session_id, current_user)
    return {"message": "Session deleted"}
