"""
Session lifecycle.

    draft -> scheduled -> in-progress -> completed
    any other status -> cancelled

Rows written before the lifecycle existed may carry NULL (shown as draft) or
the underscore spelling `in_progress`; both are normalized on read. Any other
unrecognized label reads as draft.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional
import logging

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
    SessionStatus.DRAFT: frozenset({SessionStatus.SCHEDULED, SessionStatus.CANCELLED}),
    SessionStatus.SCHEDULED: frozenset({SessionStatus.IN_PROGRESS, SessionStatus.CANCELLED}),
    SessionStatus.IN_PROGRESS: frozenset({SessionStatus.COMPLETED, SessionStatus.CANCELLED}),
    SessionStatus.COMPLETED: frozenset({SessionStatus.CANCELLED}),
    SessionStatus.CANCELLED: frozenset(),
}

INITIAL_STATUSES = frozenset({SessionStatus.DRAFT, SessionStatus.SCHEDULED})
CLOSED_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.CANCELLED})


def normalize_status(value: Optional[str]) -> SessionStatus:
    if not value:
        return SessionStatus.DRAFT
    if isinstance(value, SessionStatus):
        return value
    label = value.strip().lower().replace("_", "-")
    try:
        return SessionStatus(label)
    except ValueError:
        logger.warning(f"Unknown session status '{value}', treating as draft")
        return SessionStatus.DRAFT


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return target in TRANSITIONS[current]
