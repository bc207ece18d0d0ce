"""
Pydantic schemas for the track-flow engine.

Contract-first design: these schemas define the data contracts
between the sync engine, the scoring pipeline, and their callers.
"""

from .analysis import FitCommentary, JobAnalysis, JobPosting
from .base import BaseSchema
from .trackflow import (
    Contact,
    ContactUpdate,
    OutreachDraft,
    TrackedJobStage,
    TrackFlowState,
)

__all__ = [
    "BaseSchema",
    # Track-flow state
    "Contact",
    "ContactUpdate",
    "OutreachDraft",
    "TrackedJobStage",
    "TrackFlowState",
    # Scoring
    "FitCommentary",
    "JobAnalysis",
    "JobPosting",
]
