from .enrollment import EnrollmentService
from .toggle import RelationToggle, like_toggle

__all__ = ["EnrollmentService", "RelationToggle", "like_toggle"]
