from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from db.postgres import Base
from models.schemas import RelationshipType


def generate_uuid() -> str:
    return str(uuid4())


class DecisionRecordRow(Base):
    __tablename__ = "decision_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    owner_id: Mapped[str] = mapped_column(String(36), index=True)
    title: Mapped[str] = mapped_column(String(500))
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    context_tags: Mapped[list] = mapped_column(JSON, default=list)
    constraints: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    options_considered: Mapped[list] = mapped_column(JSON, default=list)
    selected_option: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    reasoning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    risks_assumptions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    confidence_level: Mapped[int] = mapped_column(Integer, default=3)
    estimated_impact_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    estimated_impact_label: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True
    )
    outcome: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approvers: Mapped[list] = mapped_column(JSON, default=list)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "confidence_level BETWEEN 1 AND 5", name="confidence_level_range"
        ),
        CheckConstraint("length(title) > 0", name="title_not_empty"),
    )


class DecisionLinkRow(Base):
    """Directed, typed edge between two decision records.

    Links reference decisions by id only; deleting a decision cascades to its
    links in the database.
    """

    __tablename__ = "decision_links"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    from_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("decision_records.id", ondelete="CASCADE")
    )
    to_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("decision_records.id", ondelete="CASCADE")
    )
    relationship_type: Mapped[RelationshipType] = mapped_column(
        Enum(
            RelationshipType,
            name="relationship_type",
            values_callable=lambda x: [e.value for e in x],
        )
    )
    confidence_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("from_id <> to_id", name="no_self_link"),
        Index("ix_decision_links_from_id", "from_id"),
        Index("ix_decision_links_to_id", "to_id"),
    )
