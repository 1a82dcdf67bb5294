"""Sub-asset lifecycle guard.

``needed → in_progress → review → done`` is the main path. ``needs_update``
is a side state any sub-asset can be pushed into by a manual "mark for
update"; ``canceled`` parks work that is not delivered and otherwise only
reopens to ``needed``.
"""
from __future__ import annotations

import logging

from assettrackr.exceptions import InvalidTransitionError
from assettrackr.schemas.common import Status

logger = logging.getLogger(__name__)

TRANSITIONS: dict[Status, frozenset[Status]] = {
    Status.NEEDED: frozenset({Status.IN_PROGRESS, Status.REVIEW, Status.NEEDS_UPDATE, Status.CANCELED}),
    Status.IN_PROGRESS: frozenset({Status.NEEDED, Status.REVIEW, Status.NEEDS_UPDATE, Status.CANCELED}),
    Status.REVIEW: frozenset({Status.IN_PROGRESS, Status.DONE, Status.NEEDS_UPDATE, Status.CANCELED}),
    Status.DONE: frozenset({Status.NEEDS_UPDATE}),
    Status.NEEDS_UPDATE: frozenset({Status.IN_PROGRESS, Status.REVIEW, Status.NEEDS_UPDATE, Status.CANCELED}),
    Status.CANCELED: frozenset({Status.NEEDED, Status.NEEDS_UPDATE}),
}


def allowed_targets(current: Status | str) -> set[Status]:
    return set(TRANSITIONS[Status(current)])


def can_transition(current: Status | str, target: Status | str) -> bool:
    current, target = Status(current), Status(target)
    if current == target:
        return True
    return target in TRANSITIONS[current]


def ensure_transition(current: Status | str, target: Status | str) -> Status:
    """Return *target* as a ``Status`` or raise ``InvalidTransitionError``."""
    if not can_transition(current, target):
        logger.warning("Rejected status change %s -> %s", Status(current).value, Status(target).value)
        raise InvalidTransitionError(
            f"Cannot move from '{Status(current).value}' to '{Status(target).value}'"
        )
    return Status(target)
