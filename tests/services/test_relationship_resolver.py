"""Tests for the relationship resolver (bidirectional, deduplicated, bounded)."""

import pytest

from models.errors import NotFoundError, StoreUnavailableError
from models.schemas import RelationshipType
from services.relationship_resolver import RelationshipResolver
from tests.factories import DecisionFactory
from tests.mocks import InMemoryDecisionStore, InMemoryLinkStore


def seed(decision_store: InMemoryDecisionStore, *decision_ids: str) -> None:
    for index, decision_id in enumerate(decision_ids):
        decision_store.records[decision_id] = DecisionFactory.create(
            decision_id, minutes=index
        )


class TestResolveRelated:
    @pytest.mark.asyncio
    async def test_outbound_then_inbound_with_dangling_link_dropped(
        self, decision_store, link_store
    ):
        """Link to a deleted decision is dropped; order is outbound then inbound."""
        seed(decision_store, "1", "2", "4")
        link_store.add("1", "2", "similar")
        link_store.add("1", "3", "related")  # 3 has been deleted
        link_store.add("4", "1", "supersedes")

        resolver = RelationshipResolver(decision_store, link_store)
        related = await resolver.resolve_related("1")

        assert [(r.id, r.direction, r.relationship_type) for r in related] == [
            ("2", "from", RelationshipType.SIMILAR),
            ("4", "to", RelationshipType.SUPERSEDES),
        ]

    @pytest.mark.asyncio
    async def test_first_occurrence_wins_on_duplicates(self, decision_store, link_store):
        seed(decision_store, "1", "2")
        outbound = link_store.add("1", "2", "similar")
        link_store.add("2", "1", "supersedes")

        resolver = RelationshipResolver(decision_store, link_store)
        related = await resolver.resolve_related("1")

        assert len(related) == 1
        assert related[0].link_id == outbound.id
        assert related[0].direction == "from"
        assert related[0].relationship_type == RelationshipType.SIMILAR

    @pytest.mark.asyncio
    async def test_capped_at_limit(self, decision_store, link_store):
        seed(decision_store, "root", *[f"d{i}" for i in range(7)])
        for i in range(4):
            link_store.add("root", f"d{i}")
        for i in range(4, 7):
            link_store.add(f"d{i}", "root")

        resolver = RelationshipResolver(decision_store, link_store, limit=5)
        related = await resolver.resolve_related("root")

        assert [r.id for r in related] == ["d0", "d1", "d2", "d3", "d4"]
        assert [r.direction for r in related] == ["from"] * 4 + ["to"]

    @pytest.mark.asyncio
    async def test_default_limit_is_five(self, decision_store, link_store):
        seed(decision_store, "root", *[f"d{i}" for i in range(8)])
        for i in range(8):
            link_store.add("root", f"d{i}")

        related = await RelationshipResolver(decision_store, link_store).resolve_related("root")

        assert len(related) == 5

    @pytest.mark.asyncio
    async def test_dangling_links_do_not_consume_slots(self, decision_store, link_store):
        seed(decision_store, "root", "a", "b")
        link_store.add("root", "gone-1")
        link_store.add("root", "gone-2")
        link_store.add("root", "a")
        link_store.add("b", "root")

        related = await RelationshipResolver(decision_store, link_store, limit=2).resolve_related(
            "root"
        )

        assert [r.id for r in related] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_no_links_returns_empty(self, decision_store, link_store):
        seed(decision_store, "1")
        assert await RelationshipResolver(decision_store, link_store).resolve_related("1") == []

    @pytest.mark.asyncio
    async def test_blank_id_returns_empty_without_store_calls(self, decision_store, link_store):
        resolver = RelationshipResolver(decision_store, link_store)

        assert await resolver.resolve_related("") == []
        assert await resolver.resolve_related(None) == []
        assert link_store.calls == []
        assert decision_store.calls == []

    @pytest.mark.asyncio
    async def test_titles_and_labels_come_from_counterpart(self, decision_store, link_store):
        decision_store.records["1"] = DecisionFactory.create("1")
        decision_store.records["2"] = DecisionFactory.create(
            "2", "Acme 20% discount", summary="Approved by VP"
        )
        link_store.add("1", "2", "supersedes")

        related = await RelationshipResolver(decision_store, link_store).resolve_related("1")

        assert related[0].title == "Acme 20% discount"
        assert related[0].summary == "Approved by VP"
        assert related[0].relationship_label == "Supersedes"

    @pytest.mark.asyncio
    async def test_repeated_calls_are_identical(self, decision_store, link_store):
        seed(decision_store, "1", "2", "3")
        link_store.add("1", "2")
        link_store.add("3", "1")
        resolver = RelationshipResolver(decision_store, link_store)

        assert await resolver.resolve_related("1") == await resolver.resolve_related("1")

    @pytest.mark.asyncio
    async def test_counterpart_fetched_once_per_call(self, decision_store, link_store):
        seed(decision_store, "1")
        link_store.add("1", "gone")
        link_store.add("gone", "1")

        await RelationshipResolver(decision_store, link_store).resolve_related("1")

        assert decision_store.calls.count("get_by_id") == 1


class TestResolverFailures:
    @pytest.mark.asyncio
    async def test_link_store_failure_propagates(self):
        link_store = InMemoryLinkStore()
        link_store.fail_with = StoreUnavailableError("links down")
        resolver = RelationshipResolver(InMemoryDecisionStore(), link_store)

        with pytest.raises(StoreUnavailableError):
            await resolver.resolve_related("1")

    @pytest.mark.asyncio
    async def test_decision_store_failure_propagates(self):
        link_store = InMemoryLinkStore()
        link_store.add("1", "2")
        decision_store = InMemoryDecisionStore()
        decision_store.fail_with = StoreUnavailableError("records down")
        resolver = RelationshipResolver(decision_store, link_store)

        with pytest.raises(StoreUnavailableError):
            await resolver.resolve_related("1")

    @pytest.mark.asyncio
    async def test_not_found_counterpart_is_treated_as_dangling(self):
        class RaisingStore(InMemoryDecisionStore):
            async def get_by_id(self, decision_id):
                raise NotFoundError("Decision", decision_id)

        link_store = InMemoryLinkStore()
        link_store.add("1", "2")

        related = await RelationshipResolver(RaisingStore(), link_store).resolve_related("1")

        assert related == []
