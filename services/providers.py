"""Process-wide service instances handed to the routers through ``Depends``.

Routes receive stores and services as parameters so tests can pass doubles
directly.
"""

from db.postgres import get_session_maker
from services.events import get_event_bus
from services.link_manager import LinkManager
from services.mutations import DecisionMutationController
from services.persistence import DecisionStore, LinkStore, SqlDecisionStore, SqlLinkStore
from services.relationship_resolver import RelationshipResolver

_decision_store: DecisionStore | None = None
_link_store: LinkStore | None = None


def get_decision_store() -> DecisionStore:
    global _decision_store
    if _decision_store is None:
        _decision_store = SqlDecisionStore(get_session_maker())
    return _decision_store


def get_link_store() -> LinkStore:
    global _link_store
    if _link_store is None:
        _link_store = SqlLinkStore(get_session_maker())
    return _link_store


def get_resolver() -> RelationshipResolver:
    return RelationshipResolver(get_decision_store(), get_link_store())


def get_mutation_controller() -> DecisionMutationController:
    return DecisionMutationController(get_decision_store(), get_event_bus())


def get_link_manager() -> LinkManager:
    return LinkManager(get_decision_store(), get_link_store(), get_event_bus())


def reset_providers() -> None:
    """Forget cached stores (used on shutdown and in tests)."""
    global _decision_store, _link_store
    _decision_store = None
    _link_store = None
