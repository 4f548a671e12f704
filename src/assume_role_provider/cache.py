"""Single-slot credential cache with single-flight renewal."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable

from assume_role_provider.credentials import SessionCredential
from assume_role_provider.errors import RenewalError
from assume_role_provider.utils.time import Clock, utc_now

logger = logging.getLogger(__name__)

RenewFn = Callable[[], SessionCredential]


class CredentialCache:
    """Thread-safe read-through cache holding at most one session credential.

    Callers that observe a missing or expiring credential while a renewal is
    already running wait on that renewal instead of starting their own, and
    all of them receive the same credential or the same exception.

    A failed renewal hands every waiter the same exception instance, so its
    ``__traceback__`` accumulates the frames of each caller that re-raised it.
    """

    def __init__(self, renew_fn: RenewFn, clock: Clock = utc_now) -> None:
        self._renew_fn = renew_fn
        self._clock = clock
        self._current: SessionCredential | None = None
        self._renewal_count = 0
        self._in_flight: Future[SessionCredential] | None = None
        self._lock = threading.Lock()

    @property
    def current(self) -> SessionCredential | None:
        return self._current

    @property
    def renewal_count(self) -> int:
        return self._renewal_count

    def get(self) -> SessionCredential:
        with self._lock:
            entry = self._current
            if entry is not None and not entry.will_soon_expire(self._clock()):
                return entry

            in_flight = self._in_flight
            if in_flight is None:
                in_flight = Future()
                self._in_flight = in_flight
                should_renew = True
            else:
                should_renew = False

        if not should_renew:
            return in_flight.result()

        try:
            creds = self._renew()
        except BaseException as exc:
            with self._lock:
                self._in_flight = None
            in_flight.set_exception(exc)
            raise

        with self._lock:
            self._current = creds
            self._renewal_count += 1
            self._in_flight = None
            count = self._renewal_count
        in_flight.set_result(creds)

        logger.info(
            "Renewed session credential: role=%s, session=%s, renewal=%d, stale_at=%s",
            creds.role_arn,
            creds.session_name,
            count,
            creds.stale_at.isoformat(),
        )
        return creds

    def _renew(self) -> SessionCredential:
        try:
            return self._renew_fn()
        except RenewalError as exc:
            logger.warning("Credential renewal failed: %s: %s", exc.code, exc)
            raise
        except Exception as exc:
            logger.warning("Credential renewal failed: %s", exc)
            raise RenewalError(str(exc) or type(exc).__name__, code="renewal_failed") from exc
