"""Mutation lifecycle controller for decision records.

Wraps create/update/delete against the ``DecisionStore`` with field
defaulting, ownership stamping and change notification:

- preconditions (an actor on create, a non-empty title) are checked before
  any store call
- store failures propagate unchanged; nothing is retried
- a ``ChangeEvent`` is published only after the store confirms the write
"""

from typing import Any, Optional

from models.errors import DecisionValidationError, NotAuthenticatedError
from models.schemas import DecisionFormData, DecisionInsert, DecisionRecord, DecisionUpdate
from models.vocabulary import DEFAULT_CONFIDENCE_LEVEL
from services.events import ChangeEvent, ChangeEventBus, ChangeKind
from services.persistence import DecisionStore
from utils.logging import get_logger

logger = get_logger(__name__)

# Free-text fields stored as NULL rather than "" when left blank
OPTIONAL_TEXT_FIELDS = (
    "summary",
    "constraints",
    "selected_option",
    "reasoning",
    "risks_assumptions",
    "estimated_impact_label",
    "outcome",
)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


def _require_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise DecisionValidationError("Decision title must not be empty", field="title")
    return title


class DecisionMutationController:
    def __init__(self, store: DecisionStore, bus: ChangeEventBus):
        self.store = store
        self.bus = bus

    def build_insert(self, form: DecisionFormData, actor_id: str) -> DecisionInsert:
        """Fully defaulted insert row for ``form`` owned by ``actor_id``."""
        values: dict[str, Any] = {
            name: _blank_to_none(getattr(form, name)) for name in OPTIONAL_TEXT_FIELDS
        }
        return DecisionInsert(
            title=_require_title(form.title),
            context_tags=list(form.context_tags),
            options_considered=list(form.options_considered),
            confidence_level=form.confidence_level or DEFAULT_CONFIDENCE_LEVEL,
            estimated_impact_value=form.estimated_impact_value,
            approvers=list(form.approvers),
            is_draft=form.is_draft,
            owner_id=actor_id,
            **values,
        )

    async def create(self, form: DecisionFormData, actor_id: Optional[str]) -> DecisionRecord:
        """Persist a new decision (submitted or draft) owned by ``actor_id``."""
        if not actor_id:
            raise NotAuthenticatedError()
        insert = self.build_insert(form, actor_id)

        try:
            record = await self.store.insert(insert)
        except Exception as e:
            logger.error(f"Failed to create decision: {type(e).__name__}: {e}")
            raise

        logger.info(
            f"Created decision {record.id}",
            extra={"decision_id": record.id, "is_draft": record.is_draft},
        )
        await self.bus.publish(
            ChangeEvent(ChangeKind.DECISION_CREATED, record.id, actor_id=actor_id)
        )
        return record

    def build_changes(self, update: DecisionUpdate) -> dict[str, Any]:
        """Only the fields the caller supplied, normalized for storage."""
        changes = update.model_dump(mode="json", exclude_unset=True)
        if "title" in changes:
            _require_title(changes["title"])
        for name in OPTIONAL_TEXT_FIELDS:
            if name in changes:
                changes[name] = _blank_to_none(changes[name])
        for name in ("context_tags", "options_considered", "approvers"):
            if name in changes and changes[name] is None:
                changes[name] = []
        if "confidence_level" in changes and changes["confidence_level"] is None:
            changes["confidence_level"] = DEFAULT_CONFIDENCE_LEVEL
        if "is_draft" in changes and changes["is_draft"] is None:
            del changes["is_draft"]
        if not changes:
            raise DecisionValidationError(
                "No fields to update. Provide at least one field."
            )
        return changes

    async def update(
        self,
        decision_id: str,
        update: DecisionUpdate,
        actor_id: Optional[str] = None,
    ) -> DecisionRecord:
        """Apply a partial update. Omitted fields keep their stored values."""
        changes = self.build_changes(update)

        try:
            record = await self.store.update(decision_id, changes)
        except Exception as e:
            logger.error(
                f"Failed to update decision {decision_id}: {type(e).__name__}: {e}"
            )
            raise

        logger.info(
            f"Updated decision {decision_id}",
            extra={"decision_id": decision_id, "fields": sorted(changes)},
        )
        await self.bus.publish(
            ChangeEvent(ChangeKind.DECISION_UPDATED, decision_id, actor_id=actor_id)
        )
        return record

    async def delete(self, decision_id: str, actor_id: Optional[str] = None) -> None:
        """Remove a decision. Link cleanup belongs to the store."""
        try:
            await self.store.remove(decision_id)
        except Exception as e:
            logger.error(
                f"Failed to delete decision {decision_id}: {type(e).__name__}: {e}"
            )
            raise

        logger.info(f"Deleted decision {decision_id}", extra={"decision_id": decision_id})
        await self.bus.publish(
            ChangeEvent(ChangeKind.DECISION_DELETED, decision_id, actor_id=actor_id)
        )
