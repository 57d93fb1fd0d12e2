"""
Personalized Timeline Engine.

Derives per-student personal times from the reference timeline with the
course user's timeline algorithm (fixed or adaptive).
"""
from courseplan.timeline.personalization import (
    ALGORITHMS,
    MissingReferenceTimeline,
    TimelineAlgorithm,
    TimelineUpdate,
    reference_timeline_id_for,
    time_for,
    update_personalized_timeline_for,
)

__all__ = [
    "ALGORITHMS",
    "MissingReferenceTimeline",
    "TimelineAlgorithm",
    "TimelineUpdate",
    "reference_timeline_id_for",
    "time_for",
    "update_personalized_timeline_for",
]
