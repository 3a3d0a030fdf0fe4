"""Serialize and hydrate engine records for snapshots and remote payloads."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional

from infrastructure.constants import DEFAULT_TIMEZONE, TIME_FORMAT_24H
from infrastructure.timeutils import game_start, parse_date, parse_timestamp
from reservations.models import (
    FinalScore,
    GameSummary,
    Highlight,
    HighlightType,
    LineupPlayer,
    LineupStatus,
    Pitch,
    PlayerGameStats,
    Reservation,
    ReservationStatus,
    Suspension,
)
from reservations.roster.transitions import derive_status
from tracking import t

REQUIRED_RESERVATION_FIELDS = {"id", "pitch_name", "date", "time", "max_players", "status"}
REQUIRED_PITCH_FIELDS = {"id", "name", "location", "city", "price_per_hour", "players_per_side"}
REQUIRED_SUSPENSION_FIELDS = {"user_id", "until", "reason"}
REQUIRED_REMOTE_FIELDS = {"_id", "date", "maxPlayers"}


class RecordCodec:
    """Convert between dataclasses and JSON-compatible payloads."""

    def __init__(self, timezone: str = DEFAULT_TIMEZONE) -> None:
        t('reservations.store.record_codec.RecordCodec.__init__')
        self.timezone = timezone

    # ------------------------------------------------------------------
    # Pitches
    # ------------------------------------------------------------------
    def pitch_to_storage(self, pitch: Pitch) -> Dict[str, Any]:
        t('reservations.store.record_codec.RecordCodec.pitch_to_storage')
        return {
            "id": pitch.id,
            "name": pitch.name,
            "location": pitch.location,
            "city": pitch.city,
            "price_per_hour": pitch.price_per_hour,
            "players_per_side": pitch.players_per_side,
            "facilities": sorted(pitch.facilities),
            "description": pitch.description,
        }

    def pitch_from_storage(self, payload: Mapping[str, Any]) -> Pitch:
        t('reservations.store.record_codec.RecordCodec.pitch_from_storage')
        self._ensure_fields(payload, REQUIRED_PITCH_FIELDS, "Pitch")
        return Pitch(
            id=int(payload["id"]),
            name=str(payload["name"]),
            location=str(payload["location"]),
            city=str(payload["city"]),
            price_per_hour=float(payload["price_per_hour"]),
            players_per_side=int(payload["players_per_side"]),
            facilities=frozenset(payload.get("facilities") or ()),
            description=payload.get("description"),
        )

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------
    def reservation_to_storage(self, reservation: Reservation) -> Dict[str, Any]:
        t('reservations.store.record_codec.RecordCodec.reservation_to_storage')
        return {
            "id": reservation.id,
            "backend_id": reservation.backend_id,
            "pitch_id": reservation.pitch_id,
            "pitch_name": reservation.pitch_name,
            "location": reservation.location,
            "date": reservation.date.isoformat(),
            "time": reservation.time,
            "status": reservation.status.value,
            "max_players": reservation.max_players,
            "price": reservation.price,
            "title": reservation.title,
            "lineup": [
                {
                    "user_id": player.user_id,
                    "player_name": player.player_name,
                    "status": player.status.value,
                    "joined_at": player.joined_at.isoformat() if player.joined_at else None,
                }
                for player in reservation.lineup
            ],
            "waiting_list": list(reservation.waiting_list),
            "highlights": [self._highlight_to_storage(item) for item in reservation.highlights],
            "final_score": self._score_to_storage(reservation.final_score),
            "mvp_player_id": reservation.mvp_player_id,
            "summary": self._summary_to_storage(reservation.summary),
        }

    def reservation_from_storage(self, payload: Mapping[str, Any]) -> Reservation:
        t('reservations.store.record_codec.RecordCodec.reservation_from_storage')
        self._ensure_fields(payload, REQUIRED_RESERVATION_FIELDS, "Reservation")
        max_players = int(payload["max_players"])
        if max_players <= 0:
            raise ValueError(f"Reservation {payload['id']} has invalid max_players {max_players}")

        pitch_id = payload.get("pitch_id")
        return Reservation(
            id=int(payload["id"]),
            backend_id=payload.get("backend_id"),
            pitch_id=int(pitch_id) if pitch_id is not None else None,
            pitch_name=str(payload["pitch_name"]),
            location=str(payload.get("location") or ""),
            date=parse_date(payload["date"]),
            time=str(payload["time"]),
            status=ReservationStatus(payload["status"]),
            max_players=max_players,
            price=float(payload.get("price") or 0),
            title=payload.get("title"),
            lineup=[
                LineupPlayer(
                    user_id=str(item["user_id"]),
                    player_name=str(item.get("player_name") or item["user_id"]),
                    status=LineupStatus(item.get("status", LineupStatus.JOINED.value)),
                    joined_at=parse_timestamp(item.get("joined_at"), self.timezone),
                )
                for item in payload.get("lineup") or []
            ],
            waiting_list=[str(user_id) for user_id in payload.get("waiting_list") or []],
            highlights=[self._highlight_from_storage(item) for item in payload.get("highlights") or []],
            final_score=self._score_from_storage(payload.get("final_score")),
            mvp_player_id=payload.get("mvp_player_id"),
            summary=self._summary_from_storage(payload.get("summary")),
        )

    # ------------------------------------------------------------------
    # Suspensions
    # ------------------------------------------------------------------
    def suspension_to_storage(self, suspension: Suspension) -> Dict[str, Any]:
        t('reservations.store.record_codec.RecordCodec.suspension_to_storage')
        return {
            "user_id": suspension.user_id,
            "until": suspension.until.isoformat(),
            "reason": suspension.reason,
        }

    def suspension_from_storage(self, payload: Mapping[str, Any]) -> Suspension:
        t('reservations.store.record_codec.RecordCodec.suspension_from_storage')
        self._ensure_fields(payload, REQUIRED_SUSPENSION_FIELDS, "Suspension")
        until = parse_timestamp(payload["until"], self.timezone)
        if until is None:
            raise ValueError(f"Suspension for {payload['user_id']} has invalid until {payload['until']!r}")
        return Suspension(
            user_id=str(payload["user_id"]),
            until=until,
            reason=str(payload["reason"]),
        )

    # ------------------------------------------------------------------
    # Remote booking service payloads
    # ------------------------------------------------------------------
    def reservation_from_remote(
        self,
        payload: Mapping[str, Any],
        *,
        local_id: int,
        previous: Optional[Reservation] = None,
    ) -> Reservation:
        """Map a booking-service reservation onto a local record.

        Highlights, score, MVP and summary are local-only and carried over
        from ``previous`` when the remote payload does not provide them.
        """
        t('reservations.store.record_codec.RecordCodec.reservation_from_remote')
        self._ensure_fields(payload, REQUIRED_REMOTE_FIELDS, "Remote reservation")

        pitch = payload.get("pitch")
        if isinstance(pitch, Mapping):
            pitch_name = str(pitch.get("name") or "")
            location = str(pitch.get("location") or "")
        else:
            pitch_name = str(payload.get("pitchName") or (previous.pitch_name if previous else ""))
            location = str(payload.get("location") or (previous.location if previous else ""))

        start = parse_timestamp(payload.get("startTime"), self.timezone)
        if start is not None:
            time_label = start.strftime(TIME_FORMAT_24H)
        else:
            time_label = str(payload.get("time") or (previous.time if previous else "00:00"))

        previous_players = {p.user_id: p for p in previous.lineup} if previous else {}
        lineup = [
            self._remote_player(raw, previous_players)
            for raw in payload.get("currentPlayers") or []
        ]
        waiting_list = [self._remote_user_id(raw) for raw in payload.get("waitList") or []]

        reservation = Reservation(
            id=local_id,
            backend_id=str(payload["_id"]),
            pitch_id=previous.pitch_id if previous else None,
            pitch_name=pitch_name,
            location=location,
            date=parse_date(payload["date"]),
            time=time_label,
            max_players=int(payload["maxPlayers"]),
            price=float(payload.get("price") or 0),
            title=payload.get("title"),
            lineup=lineup,
            waiting_list=waiting_list,
            highlights=list(previous.highlights) if previous else [],
            final_score=previous.final_score if previous else None,
            mvp_player_id=previous.mvp_player_id if previous else None,
            summary=previous.summary if previous else None,
        )
        remote_status = str(payload.get("status") or "").lower()
        if remote_status == ReservationStatus.COMPLETED.value:
            reservation.status = ReservationStatus.COMPLETED
        elif remote_status == ReservationStatus.CANCELLED.value:
            reservation.status = ReservationStatus.CANCELLED
        else:
            reservation.status = derive_status(reservation)
        return reservation

    def creation_payload(
        self,
        *,
        pitch: Pitch,
        game_date: date,
        time_label: str,
        max_players: int,
        price: float,
        title: Optional[str],
        duration_minutes: int = 60,
    ) -> Dict[str, Any]:
        t('reservations.store.record_codec.RecordCodec.creation_payload')
        start = game_start(game_date, time_label, self.timezone)
        end = start + timedelta(minutes=duration_minutes)
        return {
            "title": title or f"{pitch.name} {time_label}",
            "pitch": pitch.id,
            "date": game_date.isoformat(),
            "startTime": start.isoformat(),
            "endTime": end.isoformat(),
            "price": price,
            "maxPlayers": max_players,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _remote_player(
        self,
        raw: Any,
        previous_players: Mapping[str, LineupPlayer],
    ) -> LineupPlayer:
        user_id = self._remote_user_id(raw)
        known = previous_players.get(user_id)
        name = ""
        if isinstance(raw, Mapping):
            name = " ".join(
                part for part in (raw.get("firstName"), raw.get("lastName")) if part
            ).strip()
        if not name:
            name = known.player_name if known else user_id
        return LineupPlayer(
            user_id=user_id,
            player_name=name,
            status=LineupStatus.JOINED,
            joined_at=known.joined_at if known else None,
        )

    @staticmethod
    def _remote_user_id(raw: Any) -> str:
        if isinstance(raw, Mapping):
            return str(raw.get("_id") or raw.get("userId") or raw.get("id"))
        return str(raw)

    @staticmethod
    def _highlight_to_storage(highlight: Highlight) -> Dict[str, Any]:
        return {
            "id": highlight.id,
            "type": highlight.type.value,
            "player_id": highlight.player_id,
            "player_name": highlight.player_name,
            "minute": highlight.minute,
            "description": highlight.description,
            "is_penalty": highlight.is_penalty,
            "assist_player_id": highlight.assist_player_id,
        }

    @staticmethod
    def _highlight_from_storage(payload: Mapping[str, Any]) -> Highlight:
        return Highlight(
            id=str(payload["id"]),
            type=HighlightType(payload["type"]),
            player_id=str(payload["player_id"]),
            player_name=str(payload.get("player_name") or ""),
            minute=int(payload["minute"]),
            description=payload.get("description"),
            is_penalty=bool(payload.get("is_penalty", False)),
            assist_player_id=payload.get("assist_player_id"),
        )

    @staticmethod
    def _score_to_storage(score: Optional[FinalScore]) -> Optional[Dict[str, int]]:
        if score is None:
            return None
        return {"home": score.home, "away": score.away}

    @staticmethod
    def _score_from_storage(payload: Any) -> Optional[FinalScore]:
        if not payload:
            return None
        return FinalScore(home=int(payload["home"]), away=int(payload["away"]))

    def _summary_to_storage(self, summary: Optional[GameSummary]) -> Optional[Dict[str, Any]]:
        if summary is None:
            return None
        return {
            "text": summary.text,
            "mvp_player_id": summary.mvp_player_id,
            "final_score": self._score_to_storage(summary.final_score),
            "player_stats": [
                {
                    "user_id": stat.user_id,
                    "goals": stat.goals,
                    "assists": stat.assists,
                    "interceptions": stat.interceptions,
                    "clean_sheet": stat.clean_sheet,
                    "won": stat.won,
                    "attended": stat.attended,
                }
                for stat in summary.player_stats
            ],
        }

    def _summary_from_storage(self, payload: Any) -> Optional[GameSummary]:
        if not payload:
            return None
        return GameSummary(
            text=str(payload.get("text") or ""),
            mvp_player_id=payload.get("mvp_player_id"),
            final_score=self._score_from_storage(payload.get("final_score")),
            player_stats=tuple(
                PlayerGameStats(
                    user_id=str(item["user_id"]),
                    goals=int(item.get("goals", 0)),
                    assists=int(item.get("assists", 0)),
                    interceptions=int(item.get("interceptions", 0)),
                    clean_sheet=bool(item.get("clean_sheet", False)),
                    won=bool(item.get("won", False)),
                    attended=bool(item.get("attended", True)),
                )
                for item in payload.get("player_stats") or []
            ),
        )

    @staticmethod
    def _ensure_fields(
        source: Mapping[str, Any],
        required: Iterable[str],
        label: str,
    ) -> None:
        if not isinstance(source, Mapping):
            raise ValueError(f"{label} record must be an object, received {type(source).__name__}")
        missing = [name for name in required if name not in source]
        if missing:
            raise ValueError(f"{label} missing required fields: {', '.join(sorted(missing))}")


DEFAULT_CODEC = RecordCodec()

__all__ = ["RecordCodec", "DEFAULT_CODEC"]
