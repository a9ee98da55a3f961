"""Decision endpoints with owner isolation.

Actors only see and change decisions they own. Without an actor, reads
return no data (an empty list or 404) and mutations answer 401.

Reads go through the Redis read cache; mutations publish change events
that invalidate it (see utils/cache.py).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from models.errors import NotFoundError
from models.schemas import (
    DecisionFormData,
    DecisionQuery,
    DecisionRecord,
    DecisionUpdate,
    LinkedDecision,
    SortMode,
    VocabularyResponse,
)
from models.vocabulary import CONFIDENCE_LABELS, CONTEXT_TAGS, RELATIONSHIP_LABELS
from routers.auth import get_current_actor_id, require_actor
from services.mutations import DecisionMutationController
from services.persistence import DecisionStore
from services.providers import get_decision_store, get_mutation_controller, get_resolver
from services.query_engine import query_decisions
from services.relationship_resolver import RelationshipResolver
from utils.cache import DecisionReadCache, get_read_cache
from utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def get_owned_decision(
    store: DecisionStore, decision_id: str, actor_id: str
) -> DecisionRecord:
    """Fetch a decision the actor owns, 404 otherwise.

    A decision owned by someone else is reported as missing so its existence
    is not revealed.
    """
    record = await store.get_by_id(decision_id)
    if record is None or record.owner_id != actor_id:
        raise NotFoundError("Decision", decision_id)
    return record


async def load_collection(
    actor_id: str, store: DecisionStore, cache: DecisionReadCache
) -> list[DecisionRecord]:
    cached = await cache.get_collection(actor_id)
    if cached is not None:
        return cached
    decisions = await store.get_all(owner_id=actor_id)
    await cache.set_collection(actor_id, decisions)
    return decisions


@router.get("", response_model=list[DecisionRecord])
async def list_decisions(
    q: Optional[str] = Query(default=None, max_length=200),
    tag: str = Query(default="all"),
    confidence: str = Query(default="all"),
    sort: SortMode = Query(default="recent"),
    actor_id: Optional[str] = Depends(get_current_actor_id),
    store: DecisionStore = Depends(get_decision_store),
    cache: DecisionReadCache = Depends(get_read_cache),
):
    """List the actor's decisions, searched, filtered and sorted."""
    if actor_id is None:
        return []
    decisions = await load_collection(actor_id, store, cache)
    query = DecisionQuery(
        search_term=q, tag_filter=tag, confidence_filter=confidence, sort_mode=sort
    )
    return query_decisions(decisions, query)


@router.get("/vocabulary", response_model=VocabularyResponse)
async def get_vocabulary():
    """Context tags, confidence labels and relationship labels for the forms."""
    return VocabularyResponse(
        context_tags=list(CONTEXT_TAGS),
        confidence_labels=CONFIDENCE_LABELS,
        relationship_labels=RELATIONSHIP_LABELS,
    )


@router.get("/{decision_id}", response_model=DecisionRecord)
async def get_decision(
    decision_id: str,
    actor_id: Optional[str] = Depends(get_current_actor_id),
    store: DecisionStore = Depends(get_decision_store),
    cache: DecisionReadCache = Depends(get_read_cache),
):
    if actor_id is None:
        raise NotFoundError("Decision", decision_id)

    record = await cache.get_record(decision_id)
    if record is None:
        record = await store.get_by_id(decision_id)
        if record is not None:
            await cache.set_record(record)

    if record is None or record.owner_id != actor_id:
        raise NotFoundError("Decision", decision_id)
    return record


@router.get("/{decision_id}/related", response_model=list[LinkedDecision])
async def get_related_decisions(
    decision_id: str,
    actor_id: Optional[str] = Depends(get_current_actor_id),
    store: DecisionStore = Depends(get_decision_store),
    resolver: RelationshipResolver = Depends(get_resolver),
    cache: DecisionReadCache = Depends(get_read_cache),
):
    """Up to five related decisions, linked in either direction."""
    if actor_id is None:
        return []
    await get_owned_decision(store, decision_id, actor_id)

    related = await cache.get_related(decision_id)
    if related is None:
        related = await resolver.resolve_related(decision_id)
        await cache.set_related(decision_id, related)
    return related


@router.post("", response_model=DecisionRecord, status_code=201)
async def create_decision(
    form: DecisionFormData,
    actor_id: str = Depends(require_actor),
    controller: DecisionMutationController = Depends(get_mutation_controller),
):
    """Record a new decision, or save it as a draft when ``is_draft`` is set."""
    return await controller.create(form, actor_id)


@router.put("/{decision_id}", response_model=DecisionRecord)
async def update_decision(
    decision_id: str,
    update: DecisionUpdate,
    actor_id: str = Depends(require_actor),
    store: DecisionStore = Depends(get_decision_store),
    controller: DecisionMutationController = Depends(get_mutation_controller),
):
    """Partially update a decision. Only the fields sent are changed."""
    await get_owned_decision(store, decision_id, actor_id)
    return await controller.update(decision_id, update, actor_id=actor_id)


@router.delete("/{decision_id}")
async def delete_decision(
    decision_id: str,
    actor_id: str = Depends(require_actor),
    store: DecisionStore = Depends(get_decision_store),
    controller: DecisionMutationController = Depends(get_mutation_controller),
):
    """Delete a decision. Its links are removed by the store."""
    await get_owned_decision(store, decision_id, actor_id)
    await controller.delete(decision_id, actor_id=actor_id)
    return {"status": "deleted", "id": decision_id}
