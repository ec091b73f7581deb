"""WebSocket handshake checker."""
import asyncio
import logging
from typing import Optional

import websockets
from websockets.exceptions import ConnectionClosed

from .base import BaseChecker, CheckResult, error_message, timestamp

logger = logging.getLogger(__name__)


class WebSocketChecker(BaseChecker):
    """Completes an opening handshake against ``ws(s)://...`` and closes right away.

    The handshake is bounded by ``open_timeout`` and, independently, by a hard
    cap around the whole attempt.
    """

    monitor_type = "websocket"
    default_timeout = 30

    async def check(self, url: str, timeout: Optional[float] = None) -> CheckResult:
        limit = self._timeout(timeout)
        start = self._start()
        try:
            response_time = await asyncio.wait_for(self._handshake(url, limit, start), timeout=limit)
        except (asyncio.TimeoutError, TimeoutError):
            return self._failure("Connection timeout", self._elapsed_ms(start), CONNECTED=False)
        except ConnectionClosed:
            return self._failure("Connection closed before opening", self._elapsed_ms(start), CONNECTED=False)
        except Exception as e:
            return self._failure(error_message(e, "WebSocket connection failed"), self._elapsed_ms(start), CONNECTED=False)

        return CheckResult(
            success=True,
            response_time=response_time,
            context={
                "CONNECTED": True,
                "RESPONSE_TIME": response_time,
                "TIMESTAMP": timestamp(),
            },
        )

    async def _handshake(self, url: str, open_timeout: float, start: float) -> int:
        """Open the connection, record the handshake time, then close it."""
        connection = await websockets.connect(url, open_timeout=open_timeout, close_timeout=1)
        response_time = self._elapsed_ms(start)
        try:
            await connection.close()
        except ConnectionClosed as e:
            logger.debug(f"WebSocket {url} already closed: {e}")
        return response_time
