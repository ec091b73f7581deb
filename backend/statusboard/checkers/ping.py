"""ICMP echo checker built on the system ping utility."""
import asyncio
import logging
import re
import sys
from typing import List, Optional
from urllib.parse import urlsplit

from .base import BaseChecker, CheckResult, error_message, timestamp

logger = logging.getLogger(__name__)

# Per-packet wait handed to ping itself
PER_ATTEMPT_TIMEOUT_SECONDS = 5

# Example lines:
#   "64 bytes from 8.8.8.8: icmp_seq=1 ttl=117 time=14.2 ms"
#   "Reply from 8.8.8.8: bytes=32 time<1ms TTL=117"
_PING_TIME = re.compile(r"time[=<](\d+\.?\d*)", re.IGNORECASE)


def build_ping_command(host: str, platform: str = sys.platform) -> List[str]:
    """Single-packet ping arguments for the current platform."""
    if platform.startswith("win"):
        return ["ping", "-n", "1", "-w", str(PER_ATTEMPT_TIMEOUT_SECONDS * 1000), host]
    if platform == "darwin":
        return ["ping", "-c", "1", "-t", str(PER_ATTEMPT_TIMEOUT_SECONDS), host]
    return ["ping", "-c", "1", "-W", str(PER_ATTEMPT_TIMEOUT_SECONDS), host]


def parse_ping_time(output: str) -> Optional[int]:
    match = _PING_TIME.search(output)
    if not match:
        return None
    return int(round(float(match.group(1))))


def ping_succeeded(output: str) -> bool:
    """Total loss is only a failure when no reply/received marker is present."""
    lowered = output.lower()
    if "100% packet loss" not in lowered:
        return True
    return "1 received" in lowered or "reply from" in lowered


class PingChecker(BaseChecker):
    """Sends one echo request to ``ping://host``."""

    monitor_type = "ping"
    default_timeout = 10  # overall cap on the ping process

    async def check(self, url: str, timeout: Optional[float] = None) -> CheckResult:
        start = self._start()
        try:
            parts = urlsplit(url or "")
            host = parts.hostname or parts.path.lstrip("/")
        except ValueError as e:
            return self._failure(error_message(e, "Invalid ping URL"), self._elapsed_ms(start), PACKET_LOSS=100)

        # A leading dash would be read as a ping option
        if parts.scheme != "ping" or not host or host.startswith("-"):
            return self._failure(
                "Invalid ping URL format. Expected: ping://host",
                self._elapsed_ms(start),
                PACKET_LOSS=100,
            )

        try:
            returncode, output = await self._run_ping(host, self._timeout(timeout))
        except asyncio.TimeoutError:
            return self._failure("Ping timeout", self._elapsed_ms(start), PING_HOST=host, PACKET_LOSS=100)
        except Exception as e:
            return self._failure(error_message(e, "Ping failed"), self._elapsed_ms(start), PING_HOST=host, PACKET_LOSS=100)

        elapsed = self._elapsed_ms(start)
        if returncode != 0:
            message = output.strip().splitlines()[-1] if output.strip() else f"ping exited with status {returncode}"
            return self._failure(message, elapsed, PING_HOST=host, PACKET_LOSS=100)

        ping_time = parse_ping_time(output)
        if ping_time is None:
            ping_time = elapsed
        success = ping_succeeded(output)

        context = {
            "PING_HOST": host,
            "PING_TIME": ping_time,
            "PACKET_LOSS": 0 if success else 100,
            "RESPONSE_TIME": ping_time,
            "TIMESTAMP": timestamp(),
        }
        error = None
        if not success:
            error = "100% packet loss"
            context["ERROR"] = error
        return CheckResult(success=success, response_time=ping_time, context=context, error=error)

    async def _run_ping(self, host: str, timeout: float):
        """Run ping and return (returncode, combined output)."""
        proc = await asyncio.create_subprocess_exec(
            *build_ping_command(host),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise
        output = stdout.decode(errors="replace") + stderr.decode(errors="replace")
        logger.debug(f"ping {host} exited with {proc.returncode}")
        return proc.returncode, output
