"""
HTTP adapter for the remote booking service.

Blocking ``requests`` calls are pushed onto the loop's executor and bounded
by ``asyncio.wait_for`` so the event loop never stalls on the network.
Every outcome, including transport errors and timeouts, comes back as a
:class:`RemoteResult`; nothing raises past this layer.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Optional

import requests

from infrastructure.constants import (
    BACKEND_UNREACHABLE_MESSAGE,
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    REMOTE_SUCCESS_STATUS,
)
from reservations.services.booking_gateway import RemoteResult
from tracking import t


class HttpBookingGateway:
    """REST client for the booking backend."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        *,
        timeout: float = DEFAULT_API_TIMEOUT_SECONDS,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        session: Optional[requests.Session] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        t('reservations.services.http_gateway.HttpBookingGateway.__init__')
        self.logger = logging.getLogger('HttpBookingGateway')
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.executor = executor

    # ---- Player endpoints ----
    async def join(self, ref: str) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.join')
        return await self._call("POST", f"/reservations/{ref}/join", failure="Failed to join reservation")

    async def cancel(self, ref: str) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.cancel')
        return await self._call("POST", f"/reservations/{ref}/cancel", failure="Failed to cancel reservation")

    async def join_waitlist(self, ref: str) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.join_waitlist')
        return await self._call(
            "POST", f"/reservations/{ref}/waitlist/add", failure="Failed to join the waiting list"
        )

    async def leave_waitlist(self, ref: str) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.leave_waitlist')
        return await self._call(
            "POST", f"/reservations/{ref}/waitlist/remove", failure="Failed to leave the waiting list"
        )

    # ---- Admin endpoints ----
    async def delete_reservation(self, ref: str) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.delete_reservation')
        return await self._call("DELETE", f"/reservations/{ref}", failure="Failed to delete reservation")

    async def kick_player(
        self,
        ref: str,
        user_id: str,
        reason: str,
        suspension_days: int = 0,
    ) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.kick_player')
        payload: Dict[str, Any] = {"playerId": user_id}
        if reason:
            payload["reason"] = reason
        if suspension_days:
            payload["suspensionDays"] = suspension_days
        return await self._call(
            "POST", f"/reservations/{ref}/kick", payload, failure="Failed to kick player"
        )

    async def suspend_player(self, user_id: str, reason: str, days: int) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.suspend_player')
        return await self._call(
            "POST",
            f"/users/{user_id}/suspend",
            {"reason": reason, "suspensionDays": days},
            failure="Failed to suspend player",
        )

    async def add_game_summary(self, ref: str, summary: Dict[str, Any]) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.add_game_summary')
        return await self._call(
            "POST", f"/reservations/{ref}/summary", summary, failure="Failed to add summary"
        )

    async def complete_game(self, ref: str) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.complete_game')
        return await self._call(
            "POST", f"/reservations/{ref}/complete", failure="Failed to complete game"
        )

    async def create_reservation(self, payload: Dict[str, Any]) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.create_reservation')
        return await self._call(
            "POST", "/reservations", payload, failure="Failed to create reservation"
        )

    async def fetch_reservations(self) -> RemoteResult:
        t('reservations.services.http_gateway.HttpBookingGateway.fetch_reservations')
        result = await self._call("GET", "/reservations", failure="Failed to fetch reservations")
        if result.success and not isinstance(result.data.get("reservations"), list):
            return RemoteResult.failure_result(
                result.message or "Failed to fetch reservations",
                status_code=result.status_code,
            )
        return result

    # ---- Transport ----
    async def _call(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        failure: str,
    ) -> RemoteResult:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self.executor, self._request, method, path, payload, failure),
                timeout=self.timeout + 1,
            )
        except asyncio.TimeoutError:
            self.logger.warning("%s %s timed out after %ss", method, path, self.timeout)
            return RemoteResult.failure_result(BACKEND_UNREACHABLE_MESSAGE)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]],
        failure: str,
    ) -> RemoteResult:
        url = f"{self.base_url}{path}"
        self.logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self.logger.warning("%s %s failed: %s", method, url, exc)
            return RemoteResult.failure_result(BACKEND_UNREACHABLE_MESSAGE)

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message")
        if not response.ok:
            self.logger.warning(
                "%s %s returned HTTP %s: %s", method, url, response.status_code, message
            )
            return RemoteResult.failure_result(
                message or f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )

        if body.get("status") != REMOTE_SUCCESS_STATUS:
            self.logger.warning("%s %s rejected: %s", method, url, message)
            return RemoteResult.failure_result(message or failure, status_code=response.status_code)

        data = body.get("data")
        return RemoteResult.success_result(
            message=message,
            data=data if isinstance(data, dict) else {},
            status_code=response.status_code,
        )
