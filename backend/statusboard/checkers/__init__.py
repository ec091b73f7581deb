"""Protocol checkers and the registry the runner dispatches through."""
from typing import Dict, Optional

from ..schemas.monitor import MonitorType
from .base import BaseChecker, CheckResult, UnsupportedChecker
from .dns import DnsChecker
from .http import HttpChecker
from .ping import PingChecker
from .tcp import TcpChecker
from .websocket import WebSocketChecker


def default_registry(timeout: Optional[float] = None) -> Dict[str, BaseChecker]:
    """One checker instance per supported monitor type.

    ``timeout`` overrides the 10 s default of the HTTP, TCP and DNS checkers.
    WebSocket keeps its 30 s handshake limit and ping its own cap.
    """
    return {
        MonitorType.HTTP.value: HttpChecker(timeout),
        MonitorType.TCP.value: TcpChecker(timeout),
        MonitorType.DNS.value: DnsChecker(timeout),
        MonitorType.PING.value: PingChecker(),
        MonitorType.WEBSOCKET.value: WebSocketChecker(),
    }


def get_checker(monitor_type: str, registry: Optional[Dict[str, BaseChecker]] = None) -> BaseChecker:
    """Look up the checker for ``monitor_type``, falling back to ``UnsupportedChecker``."""
    registry = default_registry() if registry is None else registry
    checker = registry.get((monitor_type or "").lower())
    if checker is None:
        return UnsupportedChecker(monitor_type)
    return checker


__all__ = [
    "BaseChecker",
    "CheckResult",
    "DnsChecker",
    "HttpChecker",
    "PingChecker",
    "TcpChecker",
    "UnsupportedChecker",
    "WebSocketChecker",
    "default_registry",
    "get_checker",
]
