"""
Learning module catalogue and per-user progress.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from typing import List

from ..auth import get_required_user
from ..database import atomic, get_db
from ..models.module import Module, Progress
from ..models.user import User
from ..schemas.content import ProgressUpdate
from ..services.ownership import get_or_404

router = APIRouter(prefix="/api", tags=["learning"])


def module_to_dict(module: Module) -> dict:
    return {
        "id": module.id,
        "title": module.title,
        "description": module.description,
        "content": module.content,
        "order": module.order,
    }


def progress_to_dict(progress: Progress) -> dict:
    return {
        "id": progress.id,
        "userId": progress.user_id,
        "moduleId": progress.module_id,
        "completed": progress.completed,
        "module": module_to_dict(progress.module),
        "updatedAt": progress.updated_at.isoformat() if progress.updated_at else None,
    }


@router.get("/modules", response_model=List[dict])
def get_modules(db: Session = Depends(get_db)):
    """All modules in display order."""
    modules = db.query(Module).order_by(Module.order.asc(), Module.id.asc()).all()
    return [module_to_dict(m) for m in modules]


@router.get("/progress", response_model=List[dict])
def get_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Progress rows for the current user."""
    rows = (
        db.query(Progress)
        .options(selectinload(Progress.module))
        .filter(Progress.user_id == current_user.id)
        .all()
    )
    return [progress_to_dict(p) for p in rows]


@router.post("/progress", response_model=dict)
def update_progress(
    update: ProgressUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Create or update the current user's progress on a module."""
    user_id = current_user.id
    with atomic(db, "upsert_progress"):
        get_or_404(db, Module, update.module_id, "Module")
        progress = db.query(Progress).filter(
            Progress.user_id == user_id,
            Progress.module_id == update.module_id,
        ).first()
        if progress:
            progress.completed = update.completed
        else:
            try:
                with db.begin_nested():
                    progress = Progress(user_id=user_id, module_id=update.module_id, completed=update.completed)
                    db.add(progress)
            except IntegrityError:
                # Created concurrently; update that row instead
                progress = db.query(Progress).filter(
                    Progress.user_id == user_id,
                    Progress.module_id == update.module_id,
                ).one()
                progress.completed = update.completed
        db.flush()
        progress_id = progress.id

    return progress_to_dict(db.get(Progress, progress_id))
