"""Mock implementations for testing."""

from .store_mock import InMemoryDecisionStore, InMemoryLinkStore, RecordingBus

__all__ = [
    "InMemoryDecisionStore",
    "InMemoryLinkStore",
    "RecordingBus",
]
