"""Relationship resolver: the related decisions shown beside a decision.

Links are stored directed but surfaced from both ends. For a decision D:

1. outbound links (``from_id == D``) then inbound links (``to_id == D``),
   each in link-store order
2. each link joined to its counterpart record; links whose counterpart no
   longer resolves are dropped silently
3. deduplicated by counterpart id, first occurrence wins
4. cut to the first ``limit`` entries (5 by default)

The order is purely positional, so a fixed store state always yields the
same sequence.
"""

from typing import Optional

from config import get_settings
from models.errors import NotFoundError
from models.schemas import DecisionLink, DecisionRecord, LinkDirection, LinkedDecision
from services.persistence import DecisionStore, LinkStore
from utils.logging import get_logger

logger = get_logger(__name__)


class RelationshipResolver:
    """Computes the deduplicated, bounded, direction-aware related set."""

    def __init__(
        self,
        decision_store: DecisionStore,
        link_store: LinkStore,
        limit: Optional[int] = None,
    ):
        self.decision_store = decision_store
        self.link_store = link_store
        self.limit = limit if limit is not None else get_settings().related_decisions_limit

    async def _lookup(
        self, decision_id: str, seen: dict[str, Optional[DecisionRecord]]
    ) -> Optional[DecisionRecord]:
        # One store round trip per counterpart id per resolve call
        if decision_id not in seen:
            try:
                seen[decision_id] = await self.decision_store.get_by_id(decision_id)
            except NotFoundError:
                seen[decision_id] = None
        return seen[decision_id]

    async def resolve_related(self, decision_id: Optional[str]) -> list[LinkedDecision]:
        """Related decisions for ``decision_id``; ``[]`` for a blank id.

        Store transport failures propagate to the caller.
        """
        if not decision_id:
            return []

        outbound = await self.link_store.find_by_from(decision_id)
        inbound = await self.link_store.find_by_to(decision_id)

        edges: list[tuple[DecisionLink, str, LinkDirection]] = [
            (link, link.to_id, "from") for link in outbound
        ] + [(link, link.from_id, "to") for link in inbound]

        records: dict[str, Optional[DecisionRecord]] = {}
        related: list[LinkedDecision] = []
        included: set[str] = set()
        dropped = 0

        for link, counterpart_id, direction in edges:
            if len(related) >= self.limit:
                break
            if counterpart_id in included:
                continue
            record = await self._lookup(counterpart_id, records)
            if record is None:
                dropped += 1
                continue
            included.add(record.id)
            related.append(
                LinkedDecision(
                    id=record.id,
                    title=record.title,
                    summary=record.summary,
                    relationship_type=link.relationship_type,
                    link_id=link.id,
                    direction=direction,
                )
            )

        if dropped:
            logger.debug(f"Skipped {dropped} dangling link(s) for decision {decision_id}")
        return related
