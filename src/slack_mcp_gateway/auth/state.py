"""
Time bound, single-use storage for OAuth ``state`` parameters.

Each authorization attempt gets a random state token that the callback must
present exactly once. Abandoned tokens are evicted by a background sweep task
owned by the registry (``start()`` / ``stop()``).
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import threading
import time
from collections.abc import Callable
from typing import Optional

from .errors import StateGenerationError

logger = logging.getLogger(__name__)

STATE_TTL_SECONDS = 600.0
SWEEP_INTERVAL_SECONDS = 60.0
STATE_TOKEN_BYTES = 32


def generate_state_token(nbytes: int = STATE_TOKEN_BYTES) -> str:
    """Return a URL-safe random token with ``nbytes`` of entropy.

    Raises:
        StateGenerationError: If the system random source is unavailable
    """
    try:
        return secrets.token_urlsafe(nbytes)
    except (OSError, NotImplementedError) as e:
        logger.critical(f"Secure random source unavailable, refusing to issue state: {e}")
        raise StateGenerationError("failed to generate secure random state") from e


class StateRegistry:
    """Registry of in-flight OAuth state tokens.

    Tokens move from issued to either consumed or expired-and-swept; both are
    terminal. All access goes through a single lock and no lock is held
    across an ``await``.

    Attributes:
        ttl: Seconds a token stays valid after issue
        sweep_interval: Seconds between background sweeps
    """

    def __init__(
        self,
        ttl: float = STATE_TTL_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        token_factory: Callable[[], str] = generate_state_token,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._token_factory = token_factory
        self._lock = threading.Lock()
        self._states: dict[str, float] = {}
        self._sweep_task: Optional[asyncio.Task[None]] = None

    def issue(self) -> str:
        """Create and record a new state token."""
        while True:
            token = self._token_factory()
            with self._lock:
                if token not in self._states:
                    self._states[token] = self._clock() + self.ttl
                    return token
            logger.warning("State token collision, regenerating")

    def consume(self, token: str) -> bool:
        """Check and remove a state token in one step.

        The entry is removed whatever the outcome, so a token can be
        presented successfully at most once.

        Returns:
            True if the token was known and unexpired, False otherwise
        """
        if not token:
            return False
        with self._lock:
            expires_at = self._states.pop(token, None)
            now = self._clock()
        if expires_at is None:
            logger.debug("Unknown or already used OAuth state presented")
            return False
        if now > expires_at:
            logger.debug("Expired OAuth state presented")
            return False
        return True

    def sweep(self) -> int:
        """Remove every expired token.

        Returns:
            Number of tokens removed
        """
        with self._lock:
            now = self._clock()
            expired = [token for token, expires_at in self._states.items() if now > expires_at]
            for token in expired:
                del self._states[token]
        if expired:
            logger.debug(f"Swept {len(expired)} expired OAuth states")
        return len(expired)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def start(self) -> None:
        """Start the background sweep task (idempotent)."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="oauth-state-sweep")
        logger.info(f"Started OAuth state sweep (interval={self.sweep_interval}s, ttl={self.ttl}s)")

    async def stop(self) -> None:
        """Cancel the background sweep task and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped OAuth state sweep")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Error during OAuth state sweep: {e}", exc_info=True)
