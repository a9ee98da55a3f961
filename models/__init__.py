# Models
from models.errors import (
    DecisionMemoryError,
    DecisionValidationError,
    NotAuthenticatedError,
    NotFoundError,
    StoreUnavailableError,
)
from models.schemas import (
    DecisionFormData,
    DecisionLink,
    DecisionQuery,
    DecisionRecord,
    DecisionUpdate,
    LinkedDecision,
    RelationshipType,
)

__all__ = [
    "DecisionFormData",
    "DecisionLink",
    "DecisionQuery",
    "DecisionRecord",
    "DecisionUpdate",
    "LinkedDecision",
    "RelationshipType",
    "DecisionMemoryError",
    "DecisionValidationError",
    "NotAuthenticatedError",
    "NotFoundError",
    "StoreUnavailableError",
]
