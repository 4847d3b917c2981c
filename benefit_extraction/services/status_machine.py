"""Document processing lifecycle.

States move ``pending -> processing -> {completed | failed}``. Both
``completed`` and ``failed`` are terminal. The repository layer uses
:func:`source_states` to build conditional updates so that a status write
can never leave a terminal state, even when two writers race.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union

from benefit_extraction.core.exceptions import InvalidStatusTransitionError

MAX_ERROR_MESSAGE_LENGTH = 500
DEFAULT_FAILURE_MESSAGE = "Processing failed"


class ProcessingStatus(str, Enum):
    """Lifecycle status of an uploaded document."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_TRANSITIONS: Dict[ProcessingStatus, FrozenSet[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset({ProcessingStatus.PROCESSING}),
    ProcessingStatus.PROCESSING: frozenset(
        {ProcessingStatus.COMPLETED, ProcessingStatus.FAILED}
    ),
    ProcessingStatus.COMPLETED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({ProcessingStatus.COMPLETED, ProcessingStatus.FAILED})

StatusLike = Union[ProcessingStatus, str]


def _coerce(status: StatusLike) -> ProcessingStatus:
    return status if isinstance(status, ProcessingStatus) else ProcessingStatus(status)


def is_terminal(status: StatusLike) -> bool:
    """Return True for ``completed`` and ``failed``."""
    return _coerce(status) in TERMINAL_STATES


def can_transition(current: StatusLike, target: StatusLike) -> bool:
    """Check whether ``current -> target`` is a legal lifecycle step."""
    return _coerce(target) in ALLOWED_TRANSITIONS[_coerce(current)]


def validate_transition(current: StatusLike, target: StatusLike) -> ProcessingStatus:
    """Validate a transition and return the target status.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(_coerce(current).value, _coerce(target).value)
    return _coerce(target)


def source_states(target: StatusLike) -> List[ProcessingStatus]:
    """All states from which ``target`` may legally be entered."""
    target = _coerce(target)
    return [state for state, targets in ALLOWED_TRANSITIONS.items() if target in targets]


def truncate_error_message(message: Optional[str]) -> str:
    """Clamp a failure message to the stored column limit."""
    if not message:
        return DEFAULT_FAILURE_MESSAGE
    return message[:MAX_ERROR_MESSAGE_LENGTH]
