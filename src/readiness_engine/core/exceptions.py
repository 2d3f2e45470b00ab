"""Engine error taxonomy.

Low-confidence results are deliberately absent: a poor curve fit or a pace
source mismatch is returned with a confidence tier and warnings so callers
can decide whether to block on it.
"""

from typing import Any


class EngineError(Exception):
    """Base class for engine errors."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InsufficientDataError(EngineError):
    """Too few stages, trials or sessions to analyze."""

    def __init__(self, message: str, required: int, received: int) -> None:
        super().__init__(message, required=required, received=received)
        self.required = required
        self.received = received


class UnknownModalityError(EngineError):
    """A cross-training modality missing from the equivalency table."""

    def __init__(self, modality: str) -> None:
        super().__init__(f"Unknown cross-training modality: {modality}", modality=modality)
        self.modality = modality


class InvalidTransitionError(EngineError):
    """A workout or injury state change the state machine does not allow."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move {entity} from {current} to {target}",
            entity=entity,
            current=current,
            target=target,
        )
        self.current = current
        self.target = target


class ConcurrentModificationConflict(EngineError):
    """Two writers raced on the same athlete/day key.

    Services resolve this by re-reading and upserting; it is never surfaced
    to API clients.
    """


class NotificationDeliveryError(EngineError):
    """The notification sink rejected or failed to receive a message."""


class NotFoundError(EngineError):
    """An athlete, workout, modification or injury that does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity.capitalize()} {entity_id} not found", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id
