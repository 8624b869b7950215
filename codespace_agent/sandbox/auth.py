"""Shared-secret bearer authentication."""

from __future__ import annotations

import hmac

_SCHEME = "Bearer "


class AuthGate:
    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("AGENT_TOKEN is required")
        self._token = token.encode("utf-8")

    def authorize(self, credential: str | None) -> bool:
        if credential is None:
            return False
        try:
            presented = credential.encode("utf-8")
        except UnicodeEncodeError:
            return False
        return hmac.compare_digest(presented, self._token)

    def authorize_header(self, header: str | None) -> bool:
        """Check an ``Authorization`` header value of the form ``Bearer <token>``.

        Header values arrive decoded as latin-1, so the credential is turned
        back into the bytes the client sent before comparing.
        """
        if not header or not header.startswith(_SCHEME):
            return False
        try:
            presented = header[len(_SCHEME):].encode("latin-1")
        except UnicodeEncodeError:
            return False
        return hmac.compare_digest(presented, self._token)
