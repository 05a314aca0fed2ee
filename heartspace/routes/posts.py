"""
Community post routes: anyone can read, authors can delete their own.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload
from typing import List

from ..auth import get_required_user
from ..database import atomic, get_db
from ..errors import ValidationError
from ..models.post import Post
from ..models.user import User
from ..schemas.content import PostCreate
from ..services.ownership import ensure_owner, get_or_404

router = APIRouter(prefix="/api/posts", tags=["posts"])


def post_to_dict(post: Post) -> dict:
    """Convert a Post model to a dictionary response."""
    return {
        "id": post.id,
        "content": post.content,
        "userId": post.user_id,
        "user": {"id": post.user.id, "name": post.user.display_name},
        "createdAt": post.created_at.isoformat(),
    }


@router.get("", response_model=List[dict])
def get_posts(db: Session = Depends(get_db)):
    """All community posts, newest first."""
    posts = (
        db.query(Post)
        .options(selectinload(Post.user))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .all()
    )
    return [post_to_dict(p) for p in posts]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=dict)
def create_post(
    post_data: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Create a new community post."""
    content = post_data.content.strip()
    if not content:
        raise ValidationError("Content is required")

    with atomic(db, "create_post"):
        post = Post(user_id=current_user.id, content=content)
        db.add(post)
        db.flush()
        post_id = post.id

    return post_to_dict(db.get(Post, post_id))


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Delete a post (must belong to current user)."""
    with atomic(db, "delete_post"):
        post = get_or_404(db, Post, post_id, "Post")
        ensure_owner(post, current_user, "delete", "post")
        db.delete(post)

    return {"message": "Post deleted"}
