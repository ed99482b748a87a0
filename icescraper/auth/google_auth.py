# © 2025 Ice Calendar Sync authors. All Rights Reserved.
# Licensed for use by the ice rink session tracking service only.
# Unauthorized use, distribution, or modification is prohibited.

"""
Google OAuth - Service account bearer tokens for calendar writes
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

import pytz
import requests
from requests.auth import AuthBase

from icescraper import config
from icescraper.auth.jwt_signing import build_claimset, load_private_key, sign_assertion
from icescraper.errors import AuthConfigError, AuthenticationError
from icescraper.utils.timezone import format_stamp

logger = logging.getLogger(__name__)

TOKEN_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


class ServiceAccountAuth(AuthBase):
    """
    Attach to a requests.Session to authorize every request it sends.

    Before each request the current token is checked; a missing or expired
    token is renewed by exchanging a signed assertion at the token URI. If
    renewal fails the request fails with AuthenticationError and nothing is
    sent. Token state is process-local and unlocked.
    """

    def __init__(self, cred_file: str, token_file: Optional[str] = None,
                 http: Optional[requests.Session] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        creds = self._load_credentials(cred_file)

        self.private_key = load_private_key(creds.get('private_key', ''))
        self.client_email = creds.get('client_email')
        self.token_uri = creds.get('token_uri')
        if not self.client_email or not self.token_uri:
            raise AuthConfigError(f"{cred_file} has no client_email or token_uri")

        self.scope = config.GCAL_SCOPE
        self.token_file = token_file or None
        # Token exchange must not go through this authenticator
        self.http = http or requests.Session()
        self.clock = clock or utc_now

        self.current_token: Optional[str] = None
        self.token_validity: Optional[datetime] = None
        if self.token_file:
            # Preload stored token if we have one
            self.current_token, self.token_validity = load_stored_token(self.token_file)

        logger.info(f"Authenticator initialized for {self.client_email}")

    @staticmethod
    def _load_credentials(cred_file: str) -> dict:
        try:
            with open(cred_file, 'r') as f:
                creds = json.load(f)
        except OSError as e:
            raise AuthConfigError(f"opening credentials {cred_file}: {e}") from e
        except ValueError as e:
            raise AuthConfigError(f"parsing credentials {cred_file}: {e}") from e
        if not isinstance(creds, dict):
            raise AuthConfigError(f"parsing credentials {cred_file}: not a JSON object")
        return creds

    def __call__(self, request):
        if not self.token_is_valid():
            self.renew_token()
        request.headers['Authorization'] = f'Bearer {self.current_token}'
        return request

    def token_is_valid(self, now: Optional[datetime] = None) -> bool:
        """A token is usable only while its expiry is strictly in the future"""
        if not self.current_token or self.token_validity is None:
            return False
        return self.token_validity > (now or self.clock())

    def renew_token(self):
        """Exchange a freshly signed assertion for a bearer token"""
        now = self.clock()
        claims = build_claimset(self.client_email, self.token_uri, now, self.scope)
        assertion = sign_assertion(self.private_key, claims)

        logger.info("Token expired or missing, requesting a new one...")
        try:
            response = self.http.post(
                self.token_uri,
                data={'grant_type': TOKEN_GRANT_TYPE, 'assertion': assertion},
                timeout=config.REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise AuthenticationError(f"requesting access token: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthenticationError(f"parsing token response ({response.status_code}): {e}") from e
        if not isinstance(payload, dict):
            raise AuthenticationError(f"parsing token response ({response.status_code}): not an object")

        if payload.get('error'):
            raise AuthenticationError(
                f"no-access-token: {payload.get('error')} ({payload.get('error_description', '')})"
            )
        if response.status_code != 200:
            raise AuthenticationError(f"token request failed: {response.status_code}")

        # Only the semantics of Bearer tokens are understood
        if payload.get('token_type') != 'Bearer':
            raise AuthenticationError(f"unknown-token-type: {payload.get('token_type')}")

        token = payload.get('access_token')
        expires_in = payload.get('expires_in')
        if not token or isinstance(expires_in, bool) or not isinstance(expires_in, int):
            raise AuthenticationError("token response missing access_token or expires_in")

        self.current_token = token
        self.token_validity = now + timedelta(seconds=expires_in)
        logger.info(f"Token refreshed successfully. Expires: {format_stamp(self.token_validity)}")

        if self.token_file:
            store_token(self.token_file, self.current_token, self.token_validity)


def load_stored_token(token_file: str) -> Tuple[Optional[str], Optional[datetime]]:
    """Read a cached token; any problem just means no token"""
    try:
        with open(token_file, 'r') as f:
            cached = json.load(f)
        token = cached['token']
        validity = datetime.fromisoformat(cached['validity'])
    except FileNotFoundError:
        logger.info("No persistent token cache found")
        return None, None
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Stored token file malformed: {e}")
        return None, None

    if validity.tzinfo is None:
        validity = pytz.UTC.localize(validity)
    logger.info("✅ Loaded token from persistent storage")
    return token, validity


def store_token(token_file: str, token: str, validity: datetime):
    """Persist the token so the next process can reuse it until expiry"""
    try:
        with open(token_file, 'w') as f:
            json.dump({'token': token, 'validity': validity.isoformat()}, f)
        logger.info("✅ Token saved to persistent storage")
    except OSError as e:
        logger.error(f"Failed to save token to disk: {e}")
