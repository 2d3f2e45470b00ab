"""Coach notification model."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class NotificationUrgency(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"  # Retried by the nightly batch


class Notification(Base, AthleteScopedMixin, TimestampMixin):
    """Fire-and-forget message to the athlete's coach.

    ``dedupe_key`` makes repeated cascade runs for the same trigger collapse
    onto one record.
    """

    __tablename__ = "notifications"
    __table_args__ = ({"comment": "Coach notifications"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    dedupe_key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    recipient_id: Mapped[str | None] = mapped_column(String(36), comment="Coach ID")
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    urgency: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=lambda: {})

    status: Mapped[str] = mapped_column(
        String(20),
        default=NotificationStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Notification(athlete_id={self.athlete_id}, kind={self.kind}, "
            f"urgency={self.urgency}, status={self.status})>"
        )
