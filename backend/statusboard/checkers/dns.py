"""DNS record checker."""
import json
import logging
from typing import Callable, List, Optional
from urllib.parse import parse_qs, urlsplit

import dns.asyncresolver

from .base import BaseChecker, CheckResult, error_message, timestamp

logger = logging.getLogger(__name__)

SUPPORTED_RECORD_TYPES = ("A", "AAAA", "CNAME", "MX", "TXT", "NS")


def _format_record(record_type: str, rdata) -> str:
    """Render one rdata the way it is exposed in DNS_RECORDS."""
    if record_type in ("A", "AAAA"):
        return rdata.address
    if record_type in ("CNAME", "NS"):
        return rdata.target.to_text(omit_final_dot=True)
    if record_type == "MX":
        return f"{rdata.preference} {rdata.exchange.to_text(omit_final_dot=True)}"
    if record_type == "TXT":
        return "".join(chunk.decode("utf-8", errors="replace") for chunk in rdata.strings)
    return rdata.to_text()


class DnsChecker(BaseChecker):
    """Resolves ``dns://hostname?type=T&expect=V``.

    Without ``expect`` any successful resolution passes. With it, the
    expected value must appear in the serialized record set.
    """

    monitor_type = "dns"
    default_timeout = 10

    def __init__(
        self,
        timeout: Optional[float] = None,
        resolver_factory: Callable[[], dns.asyncresolver.Resolver] = dns.asyncresolver.Resolver,
    ):
        super().__init__(timeout)
        self.resolver_factory = resolver_factory

    async def check(self, url: str, timeout: Optional[float] = None) -> CheckResult:
        start = self._start()
        try:
            parts = urlsplit(url or "")
            query = parse_qs(parts.query)
            hostname = parts.hostname or parts.path.lstrip("/")
        except ValueError as e:
            return self._failure(error_message(e, "Invalid DNS URL"), self._elapsed_ms(start), DNS_RCODE="SERVFAIL")

        if parts.scheme != "dns" or not hostname:
            return self._failure(
                "Invalid DNS URL format. Expected: dns://hostname?type=A&expect=value",
                self._elapsed_ms(start),
                DNS_RCODE="SERVFAIL",
            )

        record_type = query.get("type", ["A"])[0].upper()
        if record_type not in SUPPORTED_RECORD_TYPES:
            record_type = "A"
        expected = query.get("expect", [None])[0]

        try:
            records = await self._resolve(hostname, record_type, self._timeout(timeout))
        except Exception as e:
            return self._failure(
                error_message(e, "DNS lookup failed"),
                self._elapsed_ms(start),
                DNS_RCODE="SERVFAIL",
                DNS_HOSTNAME=hostname,
                DNS_TYPE=record_type,
            )

        response_time = self._elapsed_ms(start)
        success = True
        error = None
        if expected:
            success = expected in json.dumps(records)
            if not success:
                error = f"Expected value not found in {record_type} records: {expected}"

        context = {
            "DNS_RCODE": "NOERROR",
            "DNS_RECORDS": records,
            "DNS_HOSTNAME": hostname,
            "DNS_TYPE": record_type,
            "RESPONSE_TIME": response_time,
            "TIMESTAMP": timestamp(),
        }
        if error:
            context["ERROR"] = error
        return CheckResult(success=success, response_time=response_time, context=context, error=error)

    async def _resolve(self, hostname: str, record_type: str, timeout: float) -> List[str]:
        resolver = self.resolver_factory()
        resolver.lifetime = timeout
        answer = await resolver.resolve(hostname, record_type)
        records = [_format_record(record_type, rdata) for rdata in answer]
        logger.debug(f"DNS {record_type} {hostname}: {records}")
        return records
