"""Create and delete links between decisions.

Links are never edited in place; changing a relationship type is a delete
followed by a create. After a confirmed write, ``LINKS_CHANGED`` is published
for every endpoint whose related list may have changed.
"""

from typing import Optional

from models.errors import DecisionValidationError, NotAuthenticatedError, NotFoundError
from models.schemas import DecisionLink, RelationshipType
from services.events import ChangeEvent, ChangeEventBus, ChangeKind
from services.persistence import DecisionStore, LinkStore
from utils.logging import get_logger

logger = get_logger(__name__)


def parse_relationship_type(value) -> RelationshipType:
    try:
        return RelationshipType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in RelationshipType)
        raise DecisionValidationError(
            f"Unknown relationship type '{value}'. Expected one of: {allowed}",
            field="relationship_type",
        ) from None


class LinkManager:
    def __init__(
        self,
        decision_store: DecisionStore,
        link_store: LinkStore,
        bus: ChangeEventBus,
    ):
        self.decision_store = decision_store
        self.link_store = link_store
        self.bus = bus

    async def create_link(
        self,
        from_id: str,
        to_id: str,
        relationship_type,
        confidence_score: Optional[float] = None,
        actor_id: Optional[str] = None,
    ) -> DecisionLink:
        """Link ``from_id -> to_id``. Both decisions must exist and differ."""
        if not actor_id:
            raise NotAuthenticatedError()
        if from_id == to_id:
            raise DecisionValidationError(
                "A decision cannot be linked to itself", field="to_id"
            )
        rel_type = parse_relationship_type(relationship_type)

        for endpoint in (from_id, to_id):
            if await self.decision_store.get_by_id(endpoint) is None:
                raise NotFoundError("Decision", endpoint)

        link = await self.link_store.insert_link(
            from_id,
            to_id,
            rel_type,
            confidence_score=confidence_score,
            created_by=actor_id,
        )
        logger.info(
            f"Linked decision {from_id} -> {to_id} ({rel_type.value})",
            extra={"link_id": link.id},
        )

        for endpoint in (from_id, to_id):
            await self.bus.publish(
                ChangeEvent(ChangeKind.LINKS_CHANGED, endpoint, actor_id=actor_id)
            )
        return link

    async def delete_link(
        self,
        link_id: str,
        decision_id: str,
        actor_id: Optional[str] = None,
    ) -> None:
        """Remove a link; ``decision_id`` is the endpoint the caller is viewing.

        A link that does not touch ``decision_id`` is reported as missing, so
        owning one decision never grants access to other links.
        """
        if not actor_id:
            raise NotAuthenticatedError()
        link = await self._find_attached(link_id, decision_id)
        if link is None:
            raise NotFoundError("Link", link_id)

        await self.link_store.remove_link(link_id)
        logger.info(f"Removed link {link_id}", extra={"decision_id": decision_id})

        for endpoint in (link.from_id, link.to_id):
            await self.bus.publish(
                ChangeEvent(ChangeKind.LINKS_CHANGED, endpoint, actor_id=actor_id)
            )

    async def _find_attached(self, link_id: str, decision_id: str) -> Optional[DecisionLink]:
        for link in await self.link_store.find_by_from(decision_id):
            if link.id == link_id:
                return link
        for link in await self.link_store.find_by_to(decision_id):
            if link.id == link_id:
                return link
        return None
