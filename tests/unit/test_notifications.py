from datetime import datetime

import pytest

from reservations.services.notifications import LoggingNotifier, NotificationBuilder, TextBlockBuilder
from tests.helpers import DummyLogger, make_reservation


def test_text_block_builder_skips_empty_fields():
    text = TextBlockBuilder().line("Hello").field("Game", "Friday").field("Reason", "").build()

    assert text == "Hello\nGame: Friday"


def test_cancellation_notice_lists_game_details():
    reservation = make_reservation(3)
    reservation.title = "Evening 5-a-side"

    notice = NotificationBuilder().game_cancelled(reservation)

    assert notice.subject == "Game Cancellation: Evening 5-a-side"
    assert "Date: 2025-06-10" in notice.message
    assert "Location: 123 Main St, Downtown" in notice.message
    assert notice.message.endswith("The Admin Team")


def test_suspension_notice_includes_until_and_default_reason():
    notice = NotificationBuilder().suspension_notice("", datetime(2025, 6, 15, 9, 30))

    assert notice.subject == "Account Suspension Notice"
    assert "No reason given" in notice.message
    assert "Suspended until: 2025-06-15 09:30" in notice.message


def test_slot_open_title_falls_back_to_pitch_and_time():
    notice = NotificationBuilder().waitlist_slot_open(make_reservation(1, time_label="19:00"))

    assert notice.subject == "Spot Available: Downtown Arena 19:00"


@pytest.mark.asyncio
async def test_logging_notifier_writes_one_line_per_message():
    logger = DummyLogger()

    await LoggingNotifier(logger).notify(["a", "b"], make_reservation(1), "Subject", "Body")

    assert logger.messages[0] == ("info", "Notification for reservation 1 to a, b: Subject")
    assert logger.messages[1][0] == "debug"
