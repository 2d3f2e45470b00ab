"""Coach notification service.

Notifications are stored first and delivered second. A record is unique on
its dedupe key (athlete, trigger date, kind), so re-running a cascade for
the same check-in never produces a second message. Delivery failures leave
the record FAILED for the nightly batch to retry.
"""

from datetime import UTC, date, datetime
from typing import Any, Protocol

import httpx
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.core.config import settings
from readiness_engine.core.exceptions import NotificationDeliveryError
from readiness_engine.models.notification import (
    Notification,
    NotificationStatus,
    NotificationUrgency,
)

logger = structlog.get_logger()

MAX_DELIVERY_ATTEMPTS = 5


class NotificationSink(Protocol):
    async def send(self, notification: Notification) -> None: ...


class LoggingSink:
    """Sink used when no webhook is configured."""

    async def send(self, notification: Notification) -> None:
        logger.info(
            "Coach notification",
            athlete_id=notification.athlete_id,
            recipient_id=notification.recipient_id,
            kind=notification.kind,
            urgency=notification.urgency,
            title=notification.title,
        )


class WebhookSink:
    """POSTs notifications as JSON to a webhook."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    async def send(self, notification: Notification) -> None:
        body = {
            "id": notification.id,
            "athlete_id": notification.athlete_id,
            "recipient_id": notification.recipient_id,
            "kind": notification.kind,
            "urgency": notification.urgency,
            "title": notification.title,
            "message": notification.message,
            "payload": notification.payload,
        }
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=body, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationDeliveryError(
                f"Webhook returned {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(f"Webhook request failed: {e}") from e


def default_sink() -> NotificationSink:
    if settings.notification_webhook_url:
        return WebhookSink(settings.notification_webhook_url, settings.notification_timeout_seconds)
    return LoggingSink()


def dedupe_key(athlete_id: str, trigger_date: date, kind: str) -> str:
    return f"{athlete_id}:{trigger_date.isoformat()}:{kind}"


class NotificationService:
    """Stores and delivers coach notifications."""

    def __init__(self, session: AsyncSession, sink: NotificationSink | None = None) -> None:
        """Initialize notification service.

        Args:
            session: Database session
            sink: Delivery transport (defaults to webhook or logging per settings)
        """
        self.session = session
        self.sink = sink or default_sink()
        self.logger = logger.bind(service="notifications")

    async def notify(
        self,
        athlete_id: str,
        trigger_date: date,
        kind: str,
        urgency: NotificationUrgency,
        title: str,
        message: str,
        payload: dict[str, Any] | None = None,
        recipient_id: str | None = None,
    ) -> Notification:
        """Create (or reuse) and deliver a notification.

        Already-sent notifications for the same key are returned untouched.

        Raises:
            NotificationDeliveryError: If delivery failed; the record is kept
                as FAILED
        """
        key = dedupe_key(athlete_id, trigger_date, kind)
        stmt = select(Notification).where(Notification.dedupe_key == key)
        notification = (await self.session.execute(stmt)).scalar_one_or_none()

        if notification is not None and notification.status == NotificationStatus.SENT.value:
            self.logger.debug("Notification already sent", dedupe_key=key)
            return notification

        if notification is None:
            notification = Notification(
                athlete_id=athlete_id,
                dedupe_key=key,
                kind=kind,
                status=NotificationStatus.PENDING.value,
                attempts=0,
            )
            self.session.add(notification)
        notification.recipient_id = recipient_id
        notification.urgency = urgency.value
        notification.title = title
        notification.message = message
        notification.payload = payload or {}
        await self.session.flush()

        await self.deliver(notification)
        return notification

    async def deliver(self, notification: Notification) -> None:
        """Send one notification and record the outcome.

        Any sink error leaves the record FAILED so the nightly batch retries it.

        Raises:
            NotificationDeliveryError: If the sink failed, wrapping any other
                exception it raised
        """
        notification.attempts += 1
        try:
            await self.sink.send(notification)
        except Exception as e:
            error = (
                e
                if isinstance(e, NotificationDeliveryError)
                else NotificationDeliveryError(str(e) or type(e).__name__, error_type=type(e).__name__)
            )
            notification.status = NotificationStatus.FAILED.value
            notification.last_error = error.message
            await self.session.flush()
            self.logger.warning(
                "Notification delivery failed",
                notification_id=notification.id,
                athlete_id=notification.athlete_id,
                attempts=notification.attempts,
                error=error.message,
            )
            if error is e:
                raise
            raise error from e

        notification.status = NotificationStatus.SENT.value
        notification.sent_at = datetime.now(UTC)
        notification.last_error = None
        await self.session.flush()

    async def retry_failed(self, max_attempts: int = MAX_DELIVERY_ATTEMPTS) -> dict[str, int]:
        """Retry FAILED notifications below the attempt limit.

        Returns:
            Counts of delivered and still-failing notifications
        """
        stmt = (
            select(Notification)
            .where(Notification.status == NotificationStatus.FAILED.value)
            .where(Notification.attempts < max_attempts)
            .order_by(Notification.created_at)
        )
        pending = list((await self.session.execute(stmt)).scalars().all())

        counts = {"delivered": 0, "failed": 0}
        for notification in pending:
            try:
                await self.deliver(notification)
                counts["delivered"] += 1
            except NotificationDeliveryError:
                counts["failed"] += 1

        if pending:
            self.logger.info("Retried failed notifications", **counts)
        return counts

    async def list_for_athlete(self, athlete_id: str) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.athlete_id == athlete_id)
            .order_by(Notification.created_at.desc())
        )
        return list((await self.session.execute(stmt)).scalars().all())
