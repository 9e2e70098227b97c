"""Submit a confirmed place to the host and hand the connected record to its listener."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional, Protocol, Union

import requests

from reviews_connect.etl.transform import to_connect_form, to_message
from reviews_connect.models import REJECTED, UNREACHABLE, ConnectedProfileRecord, FinalizeError, Place

logger = logging.getLogger(__name__)

CONNECT_PATH = "/ajax/connect"

Listener = Callable[[Dict[str, Any]], None]


def _timestamp(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return int(time.time())


class HostRejected(RuntimeError):
    """The host refused the submission (bad token or malformed payload)."""


class HostUnreachable(RuntimeError):
    """The host could not be reached or failed while handling the submission."""


class HostBoundary(Protocol):
    def submit(self, form: Dict[str, str]) -> Dict[str, Any]:
        ...


class HttpHostBoundary:
    """POSTs connect forms to the host admin endpoint."""

    def __init__(self, host_url: str, session: Optional[requests.Session] = None, timeout: int = 10) -> None:
        self.connect_url = host_url.rstrip("/") + CONNECT_PATH
        self.session = session or requests.Session()
        self.timeout = timeout

    def submit(self, form: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = self.session.post(self.connect_url, data=form, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Failed to call host connect endpoint: %s", exc)
            raise HostUnreachable(str(exc)) from exc

        if response.status_code >= 500:
            logger.error("Host returned %s: %s", response.status_code, response.text[:500])
            raise HostUnreachable(f"host returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise HostUnreachable("host returned a non-JSON body") from exc

        if response.status_code >= 400:
            message = payload.get("data") if isinstance(payload, dict) else None
            raise HostRejected(str(message or f"host returned HTTP {response.status_code}"))
        if not isinstance(payload, dict):
            raise HostRejected("host returned an unexpected payload")
        return payload


class ConnectionFinalizer:
    def __init__(self, boundary: HostBoundary, nonce: str, listener: Optional[Listener] = None) -> None:
        self.boundary = boundary
        self.nonce = nonce
        self.listener = listener

    def finalize(self, place: Place) -> Union[ConnectedProfileRecord, FinalizeError]:
        form = to_connect_form(place, self.nonce)
        try:
            payload = self.boundary.submit(form)
        except HostRejected as exc:
            logger.warning("Host rejected connection of %s: %s", place.page_id, exc)
            return FinalizeError(REJECTED, str(exc))
        except HostUnreachable as exc:
            return FinalizeError(UNREACHABLE, str(exc))

        request_id = str(payload.get("request_id") or "")
        if not payload.get("success") or not request_id:
            message = payload.get("data") or "host did not accept the connection"
            logger.warning("Host rejected connection of %s: %s", place.page_id, message)
            return FinalizeError(REJECTED, str(message))

        record = ConnectedProfileRecord(
            place=place,
            request_id=request_id,
            connected_at=_timestamp(payload.get("timestamp")),
        )
        logger.info("Connected %s (%s) request_id=%s", place.name, place.page_id, request_id)
        self._notify(record)
        return record

    def _notify(self, record: ConnectedProfileRecord) -> None:
        if self.listener is None:
            return
        try:
            self.listener(to_message(record))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Connection listener failed for %s: %s", record.page_id, exc)
