"""
Transition Policies

Decide whether a registration may move from one status to another. The
service takes any object with ``is_transition_allowed``; the default lets
operators move a file between any two catalog statuses.
"""

from typing import Protocol

from app.core.errors import ServiceError


class InvalidStatusTransitionError(ServiceError):
    """Raised when the active policy refuses a status change."""

    def __init__(self, previous: str | None, new: str):
        super().__init__(
            message=f"Cannot change status from {previous} to {new}",
            error_code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


class TransitionPolicy(Protocol):
    def is_transition_allowed(self, previous: str | None, new: str) -> bool: ...


class AllowAnyTransition:
    """Every catalog status is reachable from every other, including itself."""

    def is_transition_allowed(self, previous: str | None, new: str) -> bool:
        return True


class TransitionGraphPolicy:
    """
    Only moves listed in an explicit graph are allowed.

    Args:
        graph: Mapping of status code to the codes reachable from it
        allow_same: Whether re-applying the current status is allowed
    """

    def __init__(self, graph: dict[str, set[str]], allow_same: bool = False):
        self.graph = graph
        self.allow_same = allow_same

    def is_transition_allowed(self, previous: str | None, new: str) -> bool:
        if previous == new:
            return self.allow_same
        return new in self.graph.get(previous or "", set())


# A stricter workflow over the default catalog, for deployments that want one
STANDARD_WORKFLOW: dict[str, set[str]] = {
    "RECU": {"A_TRAITER", "INCOMPLET", "REFUSE", "ABANDONNE"},
    "A_TRAITER": {"INCOMPLET", "EN_ATTENTE", "VALIDE", "REFUSE", "AUTRE", "ABANDONNE"},
    "INCOMPLET": {"A_TRAITER", "ABANDONNE", "REFUSE"},
    "EN_ATTENTE": {"A_TRAITER", "VALIDE", "REFUSE", "ABANDONNE"},
    "VALIDE": {"TERMINE", "ABANDONNE", "ARCHIVE"},
    "REFUSE": {"ARCHIVE", "A_TRAITER"},
    "AUTRE": {"A_TRAITER", "ARCHIVE"},
    "ABANDONNE": {"ARCHIVE"},
    "TERMINE": {"ARCHIVE"},
    "ARCHIVE": set(),
}

DEFAULT_POLICY: TransitionPolicy = AllowAnyTransition()
