"""
Artwork routes: upload, browse, comment on and like artworks.
"""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from ..auth import get_required_user
from ..config import get_settings
from ..database import atomic, get_db
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models.artwork import Artwork, Comment
from ..models.user import User
from ..schemas.content import CommentCreate
from ..services.ownership import ensure_owner, get_or_404, is_storable_id
from ..services.toggle import like_toggle
from ..storage import LocalObjectStore, get_object_store

settings = get_settings()
logger = get_logger("artworks")

router = APIRouter(prefix="/api/artworks", tags=["artworks"])


def author(user: User) -> dict:
    return {"id": user.id, "name": user.display_name}


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "content": comment.content,
        "artworkId": comment.artwork_id,
        "userId": comment.user_id,
        "user": author(comment.user),
        "createdAt": comment.created_at.isoformat(),
    }


def artwork_to_dict(artwork: Artwork) -> dict:
    """Convert an Artwork model to a dictionary response."""
    return {
        "id": artwork.id,
        "title": artwork.title,
        "description": artwork.description,
        "imageUrl": artwork.image_url,
        "userId": artwork.user_id,
        "user": author(artwork.user),
        "likes": [{"id": like.id, "userId": like.user_id} for like in artwork.likes],
        "likeCount": len(artwork.likes),
        "comments": [comment_to_dict(c) for c in artwork.comments],
        "createdAt": artwork.created_at.isoformat(),
    }


def _artwork_query(db: Session):
    return db.query(Artwork).options(
        selectinload(Artwork.user),
        selectinload(Artwork.likes),
        selectinload(Artwork.comments).selectinload(Comment.user),
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=dict)
def upload_artwork(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    store: LocalObjectStore = Depends(get_object_store),
    current_user: User = Depends(get_required_user),
):
    """Upload an image, then record the artwork pointing at it."""
    if image is None:
        raise ValidationError("Image is required")

    data = image.file.read(settings.max_upload_bytes + 1)
    if not data:
        raise ValidationError("Image is required")
    if len(data) > settings.max_upload_bytes:
        raise ValidationError("Image is too large")

    # Object storage first; the database transaction starts only afterwards
    image_url = store.put(data, image.filename or "")

    with atomic(db, "create_artwork"):
        artwork = Artwork(
            title=title,
            description=description,
            image_url=image_url,
            user_id=current_user.id,
        )
        db.add(artwork)
        db.flush()
        artwork_id = artwork.id

    logger.info("Artwork uploaded", artwork_id=artwork_id, user_id=current_user.id)
    return artwork_to_dict(_artwork_query(db).filter(Artwork.id == artwork_id).one())


@router.get("", response_model=List[dict])
def list_artworks(db: Session = Depends(get_db)):
    """All artworks, newest first, with likes and comments."""
    artworks = _artwork_query(db).order_by(Artwork.created_at.desc(), Artwork.id.desc()).all()
    return [artwork_to_dict(a) for a in artworks]


@router.get("/{artwork_id}", response_model=dict)
def get_artwork(artwork_id: int, db: Session = Depends(get_db)):
    artwork = None
    if is_storable_id(artwork_id):
        artwork = _artwork_query(db).filter(Artwork.id == artwork_id).first()
    if not artwork:
        raise NotFoundError("Artwork")
    return artwork_to_dict(artwork)


@router.delete("/{artwork_id}")
def delete_artwork(
    artwork_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Delete an artwork (must belong to current user)."""
    with atomic(db, "delete_artwork"):
        artwork = get_or_404(db, Artwork, artwork_id, "Artwork")
        ensure_owner(artwork, current_user, "delete", "artwork")
        db.delete(artwork)

    return {"message": "Artwork deleted"}


@router.post("/{artwork_id}/like")
def toggle_like(
    artwork_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Like the artwork, or remove the like if it is already there."""
    liked = like_toggle.toggle(db, current_user.id, artwork_id)
    return {"message": "Liked" if liked else "Unliked", "liked": liked}


@router.post("/{artwork_id}/comments", status_code=status.HTTP_201_CREATED, response_model=dict)
def add_comment(
    artwork_id: int,
    comment_data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Comment on an artwork."""
    content = comment_data.content.strip()
    if not content:
        raise ValidationError("Comment content is required")

    with atomic(db, "create_comment"):
        get_or_404(db, Artwork, artwork_id, "Artwork")
        comment = Comment(content=content, user_id=current_user.id, artwork_id=artwork_id)
        db.add(comment)
        db.flush()
        comment_id = comment.id

    return comment_to_dict(db.get(Comment, comment_id))

