from __future__ import annotations

from .errors import InvalidTransitionError
from .remote import Ok, RemoteClient, RemoteResult, Unauthorized
from .states import validate_view_state

_AVAILABLE_ACTIONS: dict[str, frozenset[str]] = {
    "unreviewed": frozenset({"confirm", "defer"}),
    "deferred": frozenset({"confirm"}),
    "confirmed": frozenset({"resolve"}),
}


def available_actions(view_state: str) -> frozenset[str]:
    return _AVAILABLE_ACTIONS[validate_view_state(view_state)]


def needs_refresh(result: RemoteResult) -> bool:
    """Transitions that reached the server are followed by a full re-fetch."""

    return isinstance(result, (Ok, Unauthorized))


class ReviewWorkflow:
    def __init__(self, remote: RemoteClient) -> None:
        self.remote = remote

    def apply(self, finding_id: str, action: str, view_state: str) -> RemoteResult:
        allowed = available_actions(view_state)
        if action not in allowed:
            raise InvalidTransitionError(
                f"Cannot {action} from the {view_state} view "
                f"(allowed: {', '.join(sorted(allowed))})"
            )
        if not finding_id:
            raise InvalidTransitionError("Finding id required.")
        return self.remote.transition_finding(finding_id, action)
