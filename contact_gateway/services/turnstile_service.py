"""
Cloudflare Turnstile verification service.

Checks the challenge token posted with the contact form against the
Turnstile ``siteverify`` endpoint. Every failure mode (missing secret or
token, transport error, timeout, unexpected status, undecodable body,
negative verdict) returns False; the pipeline never retries.

Documentation: https://developers.cloudflare.com/turnstile/
"""
from __future__ import annotations

import logging
from typing import Optional

import requests

from contact_gateway.core.config import settings

logger = logging.getLogger(__name__)


class TurnstileService:
    """
    Verifier for Cloudflare Turnstile tokens.

    Usage:
        service = TurnstileService.from_settings()
        is_valid = service.verify(token, client_ip="203.0.113.7")
    """

    def __init__(
        self,
        secret: Optional[str],
        verify_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.secret = secret
        self.verify_url = verify_url
        self.timeout = timeout
        self._http = session or requests

    @classmethod
    def from_settings(cls) -> "TurnstileService":
        secret = settings.TURNSTILE_SECRET
        return cls(
            secret=secret.get_secret_value() if secret else None,
            verify_url=settings.TURNSTILE_VERIFY_URL,
            timeout=settings.TURNSTILE_TIMEOUT,
        )

    def verify(self, token: str, client_ip: Optional[str] = None) -> bool:
        if not self.secret:
            logger.error("TURNSTILE_SECRET not configured, rejecting challenge")
            return False

        if not token:
            logger.warning("No Turnstile token provided")
            return False

        payload = {"secret": self.secret, "response": token}
        if client_ip:
            payload["remoteip"] = client_ip

        try:
            response = self._http.post(
                self.verify_url, data=payload, timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.error("Turnstile verification timeout")
            return False
        except requests.exceptions.RequestException as exc:
            logger.error("Turnstile verification network error: %s", exc)
            return False

        if response.status_code != 200:
            logger.error("Turnstile API returned status %s", response.status_code)
            return False

        try:
            result = response.json()
        except ValueError as exc:
            logger.error("Turnstile response could not be decoded: %s", exc)
            return False

        if not isinstance(result, dict):
            logger.error("Turnstile response is not an object")
            return False

        if result.get("success") is True:
            return True

        logger.warning(
            "Turnstile verification failed: %s", result.get("error-codes", [])
        )
        return False
