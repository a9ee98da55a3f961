"""Link endpoints: relate two of the actor's decisions, or remove a relation."""

from fastapi import APIRouter, Depends, Query

from models.schemas import DecisionLink, LinkCreate
from routers.auth import require_actor
from routers.decisions import get_owned_decision
from services.link_manager import LinkManager
from services.persistence import DecisionStore
from services.providers import get_decision_store, get_link_manager

router = APIRouter()


@router.post("", response_model=DecisionLink, status_code=201)
async def create_link(
    body: LinkCreate,
    actor_id: str = Depends(require_actor),
    store: DecisionStore = Depends(get_decision_store),
    manager: LinkManager = Depends(get_link_manager),
):
    """Create a typed link ``from_id -> to_id`` between two owned decisions."""
    if body.from_id != body.to_id:
        await get_owned_decision(store, body.from_id, actor_id)
        await get_owned_decision(store, body.to_id, actor_id)
    return await manager.create_link(
        body.from_id,
        body.to_id,
        body.relationship_type,
        confidence_score=body.confidence_score,
        actor_id=actor_id,
    )


@router.delete("/{link_id}")
async def delete_link(
    link_id: str,
    decision_id: str = Query(..., min_length=1, description="Decision being viewed"),
    actor_id: str = Depends(require_actor),
    store: DecisionStore = Depends(get_decision_store),
    manager: LinkManager = Depends(get_link_manager),
):
    await get_owned_decision(store, decision_id, actor_id)
    await manager.delete_link(link_id, decision_id, actor_id=actor_id)
    return {"status": "deleted", "id": link_id}
