"""Notification intents emitted by the engine and the text they carry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Protocol, Sequence

from reservations.models import Reservation
from tracking import t


@dataclass(frozen=True)
class Notification:
    subject: str
    message: str


class Notifier(Protocol):
    """Delivery channel for notification intents (email, push, ...)."""

    async def notify(
        self,
        user_ids: Sequence[str],
        reservation: Optional[Reservation],
        subject: str,
        message: str,
    ) -> None:
        ...


class LoggingNotifier:
    """Default notifier: records every intent in the log and keeps nothing else."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        t('reservations.services.notifications.LoggingNotifier.__init__')
        self.logger = logger or logging.getLogger('Notifier')

    async def notify(
        self,
        user_ids: Sequence[str],
        reservation: Optional[Reservation],
        subject: str,
        message: str,
    ) -> None:
        t('reservations.services.notifications.LoggingNotifier.notify')
        self.logger.info(
            "Notification for reservation %s to %s: %s",
            reservation.id if reservation else "-",
            ", ".join(user_ids),
            subject,
        )
        self.logger.debug("Notification body:\n%s", message)


class TextBlockBuilder:
    """Line-oriented builder for plain-text notification bodies."""

    __slots__ = ("_lines",)

    def __init__(self) -> None:
        self._lines: List[str] = []

    def line(self, text: str = "") -> "TextBlockBuilder":
        self._lines.append(text)
        return self

    def field(self, label: str, value: Any) -> "TextBlockBuilder":
        if value not in (None, ""):
            self._lines.append(f"{label}: {value}")
        return self

    def blank(self) -> "TextBlockBuilder":
        self._lines.append("")
        return self

    def build(self) -> str:
        return "\n".join(self._lines)


class NotificationBuilder:
    """Compose the subject and body of each notification the engine sends."""

    SIGNATURE = ("Regards,", "The Admin Team")

    def __init__(self, builder_factory=TextBlockBuilder) -> None:
        t('reservations.services.notifications.NotificationBuilder.__init__')
        self._builder_factory = builder_factory

    def game_cancelled(self, reservation: Reservation) -> Notification:
        t('reservations.services.notifications.NotificationBuilder.game_cancelled')
        title = self._title(reservation)
        body = (
            self._builder_factory()
            .line("Dear Player,")
            .blank()
            .line("We regret to inform you that the following game has been cancelled:")
            .blank()
            .field("Game", title)
            .field("Date", reservation.date.isoformat())
            .field("Time", reservation.time)
            .field("Location", reservation.location or reservation.pitch_name)
            .blank()
            .line("We apologize for any inconvenience this may cause.")
            .blank()
        )
        return Notification(f"Game Cancellation: {title}", self._sign(body))

    def waitlist_slot_open(self, reservation: Reservation) -> Notification:
        t('reservations.services.notifications.NotificationBuilder.waitlist_slot_open')
        title = self._title(reservation)
        body = (
            self._builder_factory()
            .line("Dear Player,")
            .blank()
            .line("A spot has opened up in a game you are waiting for:")
            .blank()
            .field("Game", title)
            .field("Date", reservation.date.isoformat())
            .field("Time", reservation.time)
            .blank()
            .line("Join now to claim it. Spots are not held for the waiting list.")
            .blank()
        )
        return Notification(f"Spot Available: {title}", self._sign(body))

    def suspension_notice(self, reason: str, until: Optional[datetime] = None) -> Notification:
        t('reservations.services.notifications.NotificationBuilder.suspension_notice')
        body = (
            self._builder_factory()
            .line("Dear Player,")
            .blank()
            .line("Your account has been temporarily suspended due to:")
            .blank()
            .line(reason or "No reason given")
            .blank()
        )
        if until is not None:
            body.field("Suspended until", until.strftime("%Y-%m-%d %H:%M")).blank()
        body.line("If you believe this is an error, please contact the admin team.").blank()
        return Notification("Account Suspension Notice", self._sign(body))

    def removed_from_game(self, reservation: Reservation, reason: str) -> Notification:
        t('reservations.services.notifications.NotificationBuilder.removed_from_game')
        title = self._title(reservation)
        body = (
            self._builder_factory()
            .line("Dear Player,")
            .blank()
            .line("You have been removed from the following game:")
            .blank()
            .field("Game", title)
            .field("Date", reservation.date.isoformat())
            .field("Reason", reason)
            .blank()
        )
        return Notification(f"Removed from game: {title}", self._sign(body))

    @staticmethod
    def _title(reservation: Reservation) -> str:
        return reservation.title or f"{reservation.pitch_name} {reservation.time}"

    def _sign(self, builder: TextBlockBuilder) -> str:
        for line in self.SIGNATURE:
            builder.line(line)
        return builder.build()


async def dispatch_safely(
    notifier: Notifier,
    user_ids: Iterable[str],
    reservation: Optional[Reservation],
    notification: Notification,
    *,
    logger: logging.Logger,
) -> bool:
    """Hand a notification to ``notifier``; delivery failures are logged and swallowed."""

    t('reservations.services.notifications.dispatch_safely')
    recipients = [user_id for user_id in user_ids if user_id]
    if not recipients:
        return False
    try:
        await notifier.notify(recipients, reservation, notification.subject, notification.message)
    except Exception as exc:
        logger.error(
            "Failed to send '%s' to %s: %s",
            notification.subject,
            recipients,
            exc,
            exc_info=True,
        )
        return False
    return True
