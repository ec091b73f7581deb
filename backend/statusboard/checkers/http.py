"""HTTP/HTTPS checker."""
import asyncio
import logging
import socket
import ssl
from datetime import datetime
from typing import Optional, Tuple
from urllib.parse import urlsplit

import httpx
from cryptography import x509

from .base import BaseChecker, CheckResult, error_message, timestamp

logger = logging.getLogger(__name__)

# Only this much of a body is downloaded and exposed as BODY
MAX_BODY_BYTES = 64 * 1024


def get_certificate_expiry_days(host: str, port: int, timeout: float) -> Optional[int]:
    """Days until the peer certificate expires (blocking operation).

    The chain is not validated; only the expiry date is read.
    """
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE

    with socket.create_connection((host, port), timeout=timeout) as sock:
        with context.wrap_socket(sock, server_hostname=host) as ssock:
            # getpeercert() returns an empty dict under CERT_NONE
            cert_der = ssock.getpeercert(binary_form=True)
    if not cert_der:
        return None

    expiry = x509.load_der_x509_certificate(cert_der).not_valid_after_utc
    return (expiry - datetime.now(expiry.tzinfo)).days


class HttpChecker(BaseChecker):
    """Issues a GET request and reports status, body and timing.

    Status codes 2xx and 3xx count as success; anything else is left for
    conditions to refine. The timeout is one deadline for the whole check,
    so the certificate read only gets whatever the request left over.
    """

    monitor_type = "http"
    default_timeout = 10

    async def check(self, url: str, timeout: Optional[float] = None) -> CheckResult:
        limit = self._timeout(timeout)
        start = self._start()
        try:
            response, body, content_length = await asyncio.wait_for(self._fetch(url, limit), timeout=limit)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            return self._failure("Request timeout", self._elapsed_ms(start))
        except httpx.ConnectError as e:
            return self._failure(f"Connection error: {error_message(e, 'connect failed')}", self._elapsed_ms(start))
        except Exception as e:
            return self._failure(error_message(e, "HTTP request failed"), self._elapsed_ms(start))

        response_time = self._elapsed_ms(start)
        status_code = response.status_code
        success = 200 <= status_code < 400

        context = {
            "STATUS_CODE": status_code,
            "BODY": body,
            "CONTENT_TYPE": response.headers.get("content-type", ""),
            "CONTENT_LENGTH": content_length,
            "RESPONSE_TIME": response_time,
            "TIMESTAMP": timestamp(),
        }

        remaining = limit - self._elapsed_ms(start) / 1000
        if urlsplit(str(response.url)).scheme == "https" and remaining > 0:
            expiry_days = await self._certificate_expiry(str(response.url), remaining)
            if expiry_days is not None:
                context["CERTIFICATE_EXPIRATION"] = expiry_days

        error = None
        if not success:
            error = f"HTTP {status_code}"
            context["ERROR"] = error
        return CheckResult(success=success, response_time=response_time, context=context, error=error)

    async def _fetch(self, url: str, timeout: float) -> Tuple[httpx.Response, str, int]:
        """GET ``url`` reading at most MAX_BODY_BYTES of the body.

        Returns the response, the decoded body prefix and the content length
        (the Content-Length header when present, else the bytes read).
        """
        # Self-signed certificates are probed, not rejected
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True, verify=False) as client:
            async with client.stream("GET", url) as response:
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) >= MAX_BODY_BYTES:
                        break

        try:
            content_length = int(response.headers["content-length"])
        except (KeyError, ValueError):
            content_length = len(body)
        text = bytes(body[:MAX_BODY_BYTES]).decode(response.charset_encoding or "utf-8", errors="replace")
        return response, text, content_length

    async def _certificate_expiry(self, url: str, timeout: float) -> Optional[int]:
        parts = urlsplit(url)
        if not parts.hostname:
            return None
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, get_certificate_expiry_days, parts.hostname, parts.port or 443, timeout),
                timeout=timeout,
            )
        except Exception as e:
            logger.debug(f"Could not read certificate for {parts.hostname}: {e}")
            return None
