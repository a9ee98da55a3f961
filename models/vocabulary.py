"""Controlled vocabulary and display labels for decision records.

The deployment is configured for sales deal approvals; the tag list is the
fixed vocabulary ``context_tags`` values are drawn from.
"""

DECISION_TYPE_LABEL = "Deal Approval"
DECISION_TYPE_PLURAL = "Deal Approvals"

CONTEXT_TAGS: tuple[str, ...] = (
    # Deal size
    "Small Deal (<$10K)",
    "Medium Deal ($10K-$50K)",
    "Large Deal ($50K-$250K)",
    "Enterprise Deal ($250K+)",
    # Customer segment
    "New Customer",
    "Existing Customer",
    "Strategic Account",
    "Partner Referral",
    # Discount tier
    "Standard Pricing",
    "Small Discount (5-10%)",
    "Medium Discount (10-20%)",
    "Large Discount (20%+)",
    "Custom Terms",
    # Contract type
    "Monthly",
    "Annual",
    "Multi-Year",
    "Trial/POC",
    "Enterprise Agreement",
    # Deal stage
    "Early Stage",
    "Mid-Funnel",
    "Late Stage",
    "Closed Won",
    "Closed Lost",
)

CONFIDENCE_LABELS: dict[int, str] = {
    1: "Very Low (<20% probability)",
    2: "Low (20-40% probability)",
    3: "Medium (40-60% probability)",
    4: "High (60-80% probability)",
    5: "Very High (80%+ probability)",
}

DEFAULT_CONFIDENCE_LEVEL = 3

RELATIONSHIP_LABELS: dict[str, str] = {
    "similar": "Similar decision",
    "supersedes": "Supersedes",
    "related": "Related decision",
}


def get_relationship_label(relationship_type: str) -> str:
    """Display label for a relationship type; unknown types label themselves."""
    key = getattr(relationship_type, "value", relationship_type)
    return RELATIONSHIP_LABELS.get(key, key)
