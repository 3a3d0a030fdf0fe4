"""Wire one engine instance per process or session from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from infrastructure.settings import AppSettings, get_settings
from infrastructure.timeutils import local_now
from pitches.catalog import PitchCatalog
from reservations.games.manager import GameManager
from reservations.roster.manager import RosterManager
from reservations.services.action_orchestrator import ActionOrchestrator
from reservations.services.http_gateway import HttpBookingGateway
from reservations.services.notifications import LoggingNotifier
from reservations.store.record_codec import RecordCodec
from reservations.store.reservation_store import ReservationStore
from reservations.store.snapshot_repository import JsonSnapshotRepository
from reservations.suspensions.manager import SuspensionManager
from reservations.waitlist.manager import WaitlistManager
from tracking import t


@dataclass
class EngineComponents:
    settings: AppSettings
    store: ReservationStore
    catalog: PitchCatalog
    suspensions: SuspensionManager
    roster: RosterManager
    waitlist: WaitlistManager
    games: GameManager
    orchestrator: ActionOrchestrator


def build_engine(
    settings: Optional[AppSettings] = None,
    *,
    gateway: Any = None,
    notifier: Any = None,
    repository: Any = None,
    clock: Optional[Callable[[], datetime]] = None,
    token_provider: Optional[Callable[[], Optional[str]]] = None,
    load: bool = True,
) -> EngineComponents:
    """
    Build every engine component around a single store.

    Args:
        settings: Settings snapshot; defaults to :func:`get_settings`
        gateway: Booking gateway; defaults to :class:`HttpBookingGateway`
        notifier: Notification sink; defaults to :class:`LoggingNotifier`
        repository: Snapshot repository; defaults to JSON files in ``data_directory``
        clock: Callable returning the current aware datetime
        token_provider: Supplies the bearer token for the default HTTP gateway
        load: Read persisted snapshots before returning

    Returns:
        EngineComponents with the store loaded (unless ``load`` is False)
    """
    t('reservations.bootstrap.build_engine')
    settings = settings or get_settings()
    logger = logging.getLogger('ReservationStore')
    clock = clock or (lambda: local_now(settings.timezone))
    codec = RecordCodec(settings.timezone)

    repository = repository or JsonSnapshotRepository(settings.data_directory, logger=logger)
    store = ReservationStore(
        repository,
        codec=codec,
        clock=clock,
        max_waiting_list=settings.max_waiting_list,
        buffer_slots=settings.buffer_slots,
    )
    if load:
        store.load()

    catalog = PitchCatalog(store)
    suspensions = SuspensionManager(store, timezone=settings.timezone, clock=clock)
    roster = RosterManager(
        store,
        suspensions,
        buffer_slots=settings.buffer_slots,
        penalty_window_hours=settings.penalty_window_hours,
        timezone=settings.timezone,
        clock=clock,
    )
    notifier = notifier or LoggingNotifier()
    waitlist = WaitlistManager(
        store,
        suspensions,
        notifier,
        max_waiting_list=settings.max_waiting_list,
    )
    games = GameManager(store, catalog, buffer_slots=settings.buffer_slots)
    gateway = gateway or HttpBookingGateway(
        settings.api_base_url,
        timeout=settings.api_timeout_seconds,
        token_provider=token_provider,
    )
    orchestrator = ActionOrchestrator(
        store,
        roster,
        waitlist,
        suspensions,
        games,
        catalog,
        gateway,
        notifier,
        codec=codec,
        reload_after_action=settings.reload_after_action,
        timezone=settings.timezone,
        clock=clock,
    )
    return EngineComponents(
        settings=settings,
        store=store,
        catalog=catalog,
        suspensions=suspensions,
        roster=roster,
        waitlist=waitlist,
        games=games,
        orchestrator=orchestrator,
    )
