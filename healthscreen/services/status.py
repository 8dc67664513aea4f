"""Status state machine for asynchronous analyses and conversations.

analysis:     uploaded -> processing -> transcribing -> analyzing -> completed
conversation: uploaded -> processing -> transcribing -> summarizing -> completed

Any non-terminal state may move to error. Moves are one-way; nothing is revisited.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Sequence


class Status(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL: FrozenSet[Status] = frozenset({Status.COMPLETED, Status.ERROR})

ANALYSIS = "analysis"
CONVERSATION = "conversation"


def _chain(steps: Sequence[Status]) -> Dict[Status, FrozenSet[Status]]:
    graph = {s: frozenset() for s in Status}
    for cur, nxt in zip(steps, steps[1:]):
        graph[cur] = frozenset({nxt})
    return graph


_PATHS: Dict[str, Dict[Status, FrozenSet[Status]]] = {
    ANALYSIS: _chain(
        (Status.UPLOADED, Status.PROCESSING, Status.TRANSCRIBING, Status.ANALYZING, Status.COMPLETED)
    ),
    CONVERSATION: _chain(
        (Status.UPLOADED, Status.PROCESSING, Status.TRANSCRIBING, Status.SUMMARIZING, Status.COMPLETED)
    ),
}


class InvalidStatusTransition(RuntimeError):
    def __init__(self, current: Status, target: Status, kind: str = ANALYSIS):
        super().__init__(f"{kind} cannot move from '{current.value}' to '{target.value}'")
        self.current = current
        self.target = target
        self.kind = kind


def can_transition(current: Status, target: Status, kind: str = ANALYSIS) -> bool:
    if current in TERMINAL:
        return False
    if target is Status.ERROR:
        return True
    return target in _PATHS[kind][current]


def check_transition(current, target, kind: str = ANALYSIS) -> Status:
    """Validate a move on the given kind's path and return the target as a Status.

    Raises InvalidStatusTransition; an unknown kind is a KeyError.
    """
    cur, tgt = Status(current), Status(target)
    if not can_transition(cur, tgt, kind):
        raise InvalidStatusTransition(cur, tgt, kind)
    return tgt
