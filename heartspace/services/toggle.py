"""
At-most-one relation per (actor, target), flipped on every call.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import atomic
from ..logging_config import get_logger
from ..models.artwork import Artwork, Like
from .ownership import get_or_404

logger = get_logger("engagement")


class RelationToggle:
    """Toggle the existence of a unique (actor, target) relation row.

    ``relation`` is a mapped class with a unique constraint over
    ``actor_key`` and ``target_key``; that constraint is the final arbiter
    when two identical toggles race.
    """

    def __init__(self, relation, actor_key: str, target_key: str, target_model, target_name: str):
        self.relation = relation
        self.actor_key = actor_key
        self.target_key = target_key
        self.target_model = target_model
        self.target_name = target_name

    def _pair(self, actor_id: int, target_id: int) -> dict:
        return {self.actor_key: actor_id, self.target_key: target_id}

    def _delete(self, db: Session, actor_id: int, target_id: int) -> int:
        return (
            db.query(self.relation)
            .filter_by(**self._pair(actor_id, target_id))
            .delete(synchronize_session=False)
        )

    def exists(self, db: Session, actor_id: int, target_id: int) -> bool:
        return (
            db.query(self.relation.id)
            .filter_by(**self._pair(actor_id, target_id))
            .first()
            is not None
        )

    def toggle(self, db: Session, actor_id: int, target_id: int) -> bool:
        """Flip the relation and return whether it exists afterwards."""
        with atomic(db, "toggle"):
            get_or_404(db, self.target_model, target_id, self.target_name)

            if self._delete(db, actor_id, target_id):
                active = False
            else:
                try:
                    with db.begin_nested():
                        db.add(self.relation(**self._pair(actor_id, target_id)))
                    active = True
                except IntegrityError:
                    # A concurrent toggle inserted first; treat as already set
                    self._delete(db, actor_id, target_id)
                    active = False

        logger.info(
            f"{self.relation.__name__} {'created' if active else 'removed'}",
            actor_id=actor_id,
            target_id=target_id,
        )
        return active


like_toggle = RelationToggle(
    Like,
    actor_key="user_id",
    target_key="artwork_id",
    target_model=Artwork,
    target_name="Artwork",
)
