"""Tests for the decision mutation controller."""

import pytest

from models.errors import (
    DecisionValidationError,
    NotAuthenticatedError,
    NotFoundError,
    StoreUnavailableError,
)
from models.schemas import DecisionFormData, DecisionUpdate, OptionConsidered
from services.events import ChangeKind
from services.mutations import DecisionMutationController
from tests.factories import OWNER_ID, DecisionFactory


@pytest.fixture
def controller(decision_store, event_bus):
    return DecisionMutationController(decision_store, event_bus)


class TestCreate:
    @pytest.mark.asyncio
    async def test_empty_title_rejected_before_store_call(
        self, controller, decision_store, event_bus
    ):
        with pytest.raises(DecisionValidationError) as exc_info:
            await controller.create(DecisionFormData(title=""), OWNER_ID)

        assert exc_info.value.field == "title"
        assert decision_store.calls == []
        assert event_bus.events == []

    @pytest.mark.asyncio
    async def test_whitespace_title_rejected(self, controller, decision_store):
        with pytest.raises(DecisionValidationError):
            await controller.create(DecisionFormData(title="   "), OWNER_ID)
        assert decision_store.calls == []

    @pytest.mark.asyncio
    async def test_missing_actor_rejected_before_store_call(self, controller, decision_store):
        with pytest.raises(NotAuthenticatedError):
            await controller.create(DecisionFactory.create_form(), None)
        assert decision_store.calls == []

    @pytest.mark.asyncio
    async def test_defaults_applied(self, controller):
        record = await controller.create(DecisionFactory.create_form(), OWNER_ID)

        assert record.confidence_level == 3
        assert record.context_tags == []
        assert record.options_considered == []
        assert record.approvers == []
        assert record.is_draft is False
        assert record.owner_id == OWNER_ID

    @pytest.mark.asyncio
    async def test_blank_optional_text_stored_as_none(self, controller):
        form = DecisionFactory.create_form(summary="", reasoning="", outcome="Won")

        record = await controller.create(form, OWNER_ID)

        assert record.summary is None
        assert record.reasoning is None
        assert record.outcome == "Won"

    @pytest.mark.asyncio
    async def test_full_form_persisted(self, controller):
        form = DecisionFactory.create_form(
            context_tags=["Annual", "Strategic Account"],
            options_considered=[
                OptionConsidered(label="10% off", description="Standard"),
                OptionConsidered(label="20% off"),
            ],
            selected_option="20% off",
            confidence_level=5,
            estimated_impact_value=120000,
            estimated_impact_label="$120K ARR",
            approvers=["vp-sales"],
        )

        record = await controller.create(form, OWNER_ID)

        assert record.context_tags == ["Annual", "Strategic Account"]
        assert [o.label for o in record.options_considered] == ["10% off", "20% off"]
        assert record.selected_option == "20% off"
        assert record.confidence_level == 5
        assert record.estimated_impact_value == 120000
        assert record.approvers == ["vp-sales"]

    @pytest.mark.asyncio
    async def test_draft_flag_kept(self, controller):
        record = await controller.create(DecisionFactory.create_form(is_draft=True), OWNER_ID)
        assert record.is_draft is True

    @pytest.mark.asyncio
    async def test_publishes_created_event_after_insert(self, controller, event_bus):
        record = await controller.create(DecisionFactory.create_form(), OWNER_ID)

        assert len(event_bus.events) == 1
        event = event_bus.events[0]
        assert event.kind == ChangeKind.DECISION_CREATED
        assert event.decision_id == record.id
        assert event.actor_id == OWNER_ID

    @pytest.mark.asyncio
    async def test_store_failure_propagates_without_event_or_retry(
        self, controller, decision_store, event_bus
    ):
        decision_store.fail_with = StoreUnavailableError("down")

        with pytest.raises(StoreUnavailableError):
            await controller.create(DecisionFactory.create_form(), OWNER_ID)

        assert decision_store.calls == ["insert"]
        assert event_bus.events == []


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, controller, decision_store):
        original = DecisionFactory.create(
            "d1", "Acme renewal", summary="Initial", confidence_level=2
        )
        decision_store.records["d1"] = original

        record = await controller.update("d1", DecisionUpdate(outcome="Closed won"))

        assert record.outcome == "Closed won"
        assert record.title == "Acme renewal"
        assert record.summary == "Initial"
        assert record.confidence_level == 2
        assert record.updated_at > original.updated_at

    @pytest.mark.asyncio
    async def test_only_supplied_fields_sent_to_store(self, controller):
        changes = controller.build_changes(DecisionUpdate(title="New", summary=""))
        assert changes == {"title": "New", "summary": None}

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, controller, decision_store):
        decision_store.records["d1"] = DecisionFactory.create("d1")

        with pytest.raises(DecisionValidationError):
            await controller.update("d1", DecisionUpdate())
        assert decision_store.calls == []

    @pytest.mark.asyncio
    async def test_update_empty_after_normalization_rejected(
        self, controller, decision_store, event_bus
    ):
        decision_store.records["d1"] = DecisionFactory.create("d1")

        with pytest.raises(DecisionValidationError):
            await controller.update("d1", DecisionUpdate(is_draft=None))
        assert decision_store.calls == []
        assert event_bus.events == []

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, controller, decision_store):
        decision_store.records["d1"] = DecisionFactory.create("d1")

        with pytest.raises(DecisionValidationError):
            await controller.update("d1", DecisionUpdate(title=" "))
        assert decision_store.calls == []

    @pytest.mark.asyncio
    async def test_explicit_null_confidence_resets_to_default(self, controller, decision_store):
        decision_store.records["d1"] = DecisionFactory.create("d1", confidence_level=5)

        record = await controller.update("d1", DecisionUpdate(confidence_level=None))

        assert record.confidence_level == 3

    @pytest.mark.asyncio
    async def test_missing_record_propagates_not_found(self, controller, event_bus):
        with pytest.raises(NotFoundError):
            await controller.update("missing", DecisionUpdate(title="x"))
        assert event_bus.events == []

    @pytest.mark.asyncio
    async def test_publishes_updated_event(self, controller, decision_store, event_bus):
        decision_store.records["d1"] = DecisionFactory.create("d1")

        await controller.update("d1", DecisionUpdate(title="Renamed"), actor_id=OWNER_ID)

        assert [(e.kind, e.decision_id) for e in event_bus.events] == [
            (ChangeKind.DECISION_UPDATED, "d1")
        ]


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_removes_record_and_links(
        self, controller, decision_store, link_store, event_bus
    ):
        decision_store.records["d1"] = DecisionFactory.create("d1")
        decision_store.records["d2"] = DecisionFactory.create("d2")
        link_store.add("d1", "d2")

        await controller.delete("d1", actor_id=OWNER_ID)

        assert "d1" not in decision_store.records
        assert link_store.links == []
        assert [(e.kind, e.decision_id) for e in event_bus.events] == [
            (ChangeKind.DECISION_DELETED, "d1")
        ]

    @pytest.mark.asyncio
    async def test_delete_missing_record(self, controller, event_bus):
        with pytest.raises(NotFoundError):
            await controller.delete("missing")
        assert event_bus.events == []
