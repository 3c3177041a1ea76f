"""
Google sign-in: checks an ID token against Google's tokeninfo endpoint.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from app.core.errors import AuthenticationError, UpstreamServiceError

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


@dataclass
class GoogleIdentity:
    sub: str
    email: str
    name: str
    picture: Optional[str] = None


class GoogleTokenVerifier:

    def __init__(self, client_id: str, tokeninfo_url: str, timeout: float = 10):
        self.client_id = client_id
        self.tokeninfo_url = tokeninfo_url
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "GoogleTokenVerifier":
        return cls(
            client_id=settings.GOOGLE_CLIENT_ID,
            tokeninfo_url=settings.GOOGLE_TOKENINFO_URL,
            timeout=settings.HTTP_TIMEOUT,
        )

    def verify(self, credential: str) -> GoogleIdentity:
        if not self.client_id:
            raise UpstreamServiceError("Google sign-in is not configured.")

        try:
            response = requests.get(
                self.tokeninfo_url,
                params={"id_token": credential},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Google tokeninfo unreachable: {e}")
            raise UpstreamServiceError("Could not verify Google credential.") from e

        # tokeninfo answers 400 for malformed, expired or forged tokens
        if response.status_code != 200:
            logger.warning(f"Google rejected credential (HTTP {response.status_code})")
            raise AuthenticationError("Invalid Google credential.")

        claims = response.json()
        if claims.get("aud") != self.client_id or claims.get("iss") not in GOOGLE_ISSUERS:
            logger.warning("Google credential issued for another client")
            raise AuthenticationError("Invalid Google credential.")
        if str(claims.get("email_verified")).lower() != "true" or not claims.get("email"):
            raise AuthenticationError("Google account email is not verified.")

        email = claims["email"]
        return GoogleIdentity(
            sub=claims["sub"],
            email=email,
            name=claims.get("name") or email.split("@")[0],
            picture=claims.get("picture"),
        )
