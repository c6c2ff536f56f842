"""PIX instrument state machine transitions enforced by the expiry controller."""

PENDING = "PENDING"
ACTIVE = "ACTIVE"
EXPIRED = "EXPIRED"
ERRORED = "ERRORED"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    PENDING: {ACTIVE, ERRORED},
    ACTIVE: {EXPIRED},
    EXPIRED: set(),
    ERRORED: set(),
}


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")
