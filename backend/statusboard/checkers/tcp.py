"""TCP connect checker."""
import asyncio
import logging
import re
from typing import Optional

from .base import BaseChecker, CheckResult, error_message, timestamp

logger = logging.getLogger(__name__)

_TCP_URL = re.compile(r"^tcp://([^:]+):(\d+)$")


class TcpChecker(BaseChecker):
    """Opens a raw TCP connection to ``tcp://host:port`` and closes it again."""

    monitor_type = "tcp"
    default_timeout = 10

    async def check(self, url: str, timeout: Optional[float] = None) -> CheckResult:
        match = _TCP_URL.match(url or "")
        if not match:
            return CheckResult(
                success=False,
                response_time=0,
                context={
                    "CONNECTED": False,
                    "ERROR": "Invalid TCP URL format. Expected: tcp://host:port",
                    "TIMESTAMP": timestamp(),
                },
                error="Invalid URL format",
            )

        host, port = match.group(1), int(match.group(2))
        start = self._start()
        writer = None
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self._timeout(timeout),
            )
            response_time = self._elapsed_ms(start)
            return CheckResult(
                success=True,
                response_time=response_time,
                context={
                    "CONNECTED": True,
                    "RESPONSE_TIME": response_time,
                    "STATUS": "connected",
                    "TIMESTAMP": timestamp(),
                },
            )
        except asyncio.TimeoutError:
            return self._failure("Connection timeout", self._elapsed_ms(start), CONNECTED=False)
        except Exception as e:
            return self._failure(error_message(e, "Connection failed"), self._elapsed_ms(start), CONNECTED=False)
        finally:
            if writer is not None:
                writer.close()
                try:
                    await writer.wait_closed()
                except OSError as e:
                    logger.debug(f"Error closing TCP probe to {host}:{port}: {e}")
