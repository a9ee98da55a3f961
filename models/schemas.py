"""Pydantic schemas for decision records, links and collection queries."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from models.vocabulary import CONTEXT_TAGS, get_relationship_label

SortMode = Literal["recent", "confidence", "impact"]
LinkDirection = Literal["from", "to"]

# Sentinel accepted by tag and confidence filters meaning "no filter"
FILTER_ALL = "all"


class RelationshipType(str, Enum):
    """Typed edge between two decision records."""

    SIMILAR = "similar"
    SUPERSEDES = "supersedes"
    RELATED = "related"


class OptionConsidered(BaseModel):
    """One alternative weighed for a decision. ``label`` joins against ``selected_option``."""

    label: str = Field(..., max_length=500)
    description: str = Field("", max_length=10000)


def _validate_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    unknown = [tag for tag in tags if tag not in CONTEXT_TAGS]
    if unknown:
        raise ValueError(f"Unknown context tags: {', '.join(unknown)}")
    return tags


class DecisionFormData(BaseModel):
    """Form submission for a new decision (submit or save-draft).

    The title is deliberately not length-checked here: an empty title is a
    precondition failure raised by the mutation controller.
    """

    title: str = Field("", max_length=500)
    summary: Optional[str] = Field(None, max_length=10000)
    context_tags: list[str] = Field(default_factory=list)
    constraints: Optional[str] = Field(None, max_length=10000)
    options_considered: list[OptionConsidered] = Field(default_factory=list, max_length=50)
    selected_option: Optional[str] = Field(None, max_length=500)
    reasoning: Optional[str] = Field(None, max_length=20000)
    risks_assumptions: Optional[str] = Field(None, max_length=10000)
    confidence_level: Optional[int] = Field(None, ge=1, le=5)
    estimated_impact_value: Optional[float] = Field(None, ge=0)
    estimated_impact_label: Optional[str] = Field(None, max_length=200)
    outcome: Optional[str] = Field(None, max_length=10000)
    approvers: list[str] = Field(default_factory=list)
    is_draft: bool = False

    @field_validator("context_tags")
    @classmethod
    def validate_context_tags(cls, v: list[str]) -> list[str]:
        return _validate_tags(v)


class DecisionUpdate(BaseModel):
    """Partial update. Only fields present in the request are changed."""

    title: Optional[str] = Field(None, max_length=500)
    summary: Optional[str] = Field(None, max_length=10000)
    context_tags: Optional[list[str]] = None
    constraints: Optional[str] = Field(None, max_length=10000)
    options_considered: Optional[list[OptionConsidered]] = Field(None, max_length=50)
    selected_option: Optional[str] = Field(None, max_length=500)
    reasoning: Optional[str] = Field(None, max_length=20000)
    risks_assumptions: Optional[str] = Field(None, max_length=10000)
    confidence_level: Optional[int] = Field(None, ge=1, le=5)
    estimated_impact_value: Optional[float] = Field(None, ge=0)
    estimated_impact_label: Optional[str] = Field(None, max_length=200)
    outcome: Optional[str] = Field(None, max_length=10000)
    approvers: Optional[list[str]] = None
    is_draft: Optional[bool] = None

    @field_validator("context_tags")
    @classmethod
    def validate_context_tags(cls, v: list[str] | None) -> list[str] | None:
        return _validate_tags(v)


class DecisionInsert(BaseModel):
    """Fully defaulted row handed to the Persistence Service on create."""

    title: str
    summary: Optional[str]
    context_tags: list[str]
    constraints: Optional[str]
    options_considered: list[OptionConsidered]
    selected_option: Optional[str]
    reasoning: Optional[str]
    risks_assumptions: Optional[str]
    confidence_level: int
    estimated_impact_value: Optional[float]
    estimated_impact_label: Optional[str]
    outcome: Optional[str]
    approvers: list[str]
    is_draft: bool
    owner_id: str


class DecisionRecord(BaseModel):
    """A persisted decision."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    summary: Optional[str] = None
    context_tags: list[str] = Field(default_factory=list)
    constraints: Optional[str] = None
    options_considered: list[OptionConsidered] = Field(default_factory=list)
    selected_option: Optional[str] = None
    reasoning: Optional[str] = None
    risks_assumptions: Optional[str] = None
    confidence_level: Optional[int] = None
    estimated_impact_value: Optional[float] = None
    estimated_impact_label: Optional[str] = None
    outcome: Optional[str] = None
    approvers: list[str] = Field(default_factory=list)
    is_draft: bool = False
    owner_id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("context_tags", "options_considered", "approvers", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        return [] if v is None else v


class DecisionLink(BaseModel):
    """A stored, directed edge ``from_id -> to_id``."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    from_id: str
    to_id: str
    relationship_type: RelationshipType
    confidence_score: Optional[float] = None
    created_by: Optional[str] = None
    created_at: datetime


class LinkCreate(BaseModel):
    from_id: str = Field(..., min_length=1, max_length=36)
    to_id: str = Field(..., min_length=1, max_length=36)
    relationship_type: RelationshipType
    confidence_score: Optional[float] = Field(None, ge=0.0, le=1.0)


class LinkedDecision(BaseModel):
    """A decision related to the one being viewed, seen from the viewer's side.

    ``direction`` is "from" when the viewed decision is the link's source and
    "to" when it is the link's target.
    """

    id: str
    title: str
    summary: Optional[str] = None
    relationship_type: RelationshipType
    link_id: str
    direction: LinkDirection

    @computed_field
    @property
    def relationship_label(self) -> str:
        return get_relationship_label(self.relationship_type)


class DecisionQuery(BaseModel):
    """Free-text search, tag filter, confidence filter and sort mode."""

    search_term: Optional[str] = None
    tag_filter: str = FILTER_ALL
    confidence_filter: str = FILTER_ALL
    sort_mode: SortMode = "recent"

    @field_validator("confidence_filter", mode="before")
    @classmethod
    def coerce_confidence_filter(cls, v):
        if v is None:
            return FILTER_ALL
        return str(v)

    @field_validator("tag_filter", mode="before")
    @classmethod
    def coerce_tag_filter(cls, v):
        return FILTER_ALL if v is None else v


class VocabularyResponse(BaseModel):
    context_tags: list[str]
    confidence_labels: dict[int, str]
    relationship_labels: dict[str, str]
