"""
Remote authorization request (step 1 of the remote OAuth flow)
Builds the consent URL with a PKCE challenge and an anti-CSRF state
"""

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

AUTHORIZE_URL = 'https://api.meethue.com/v2/oauth2/authorize'

# Random state prefix: one non-zero digit followed by 30-44 more
STATE_MIN_EXTRA_DIGITS = 30
STATE_MAX_EXTRA_DIGITS = 44


@dataclass(frozen=True)
class AuthorizationRequest:
    """What the caller must keep until the redirect comes back"""
    url: str
    state: str
    code_verifier: str


def _urlsafe_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def generate_code_verifier() -> str:
    """32 random bytes, URL-safe base64"""
    return _urlsafe_b64(secrets.token_bytes(32))


def code_challenge_for(code_verifier: str) -> str:
    """S256 challenge for a verifier"""
    return _urlsafe_b64(hashlib.sha256(code_verifier.encode('ascii')).digest())


def generate_state_secret() -> str:
    extra = STATE_MIN_EXTRA_DIGITS + secrets.randbelow(STATE_MAX_EXTRA_DIGITS - STATE_MIN_EXTRA_DIGITS + 1)
    digits = [str(1 + secrets.randbelow(9))]
    digits.extend(str(secrets.randbelow(10)) for _ in range(extra))
    return ''.join(digits)


def compose_state(state: Optional[str] = None) -> str:
    """Random numeric secret, then '-<state>' when the caller supplied one"""
    secret = generate_state_secret()
    if state:
        return f"{secret}-{state}"
    return secret


def build_authorization_request(
    client_id: str,
    redirect_uri: str,
    device_name: Optional[str] = None,
    state: Optional[str] = None,
) -> AuthorizationRequest:
    """
    Build the URL the user visits to grant this app access to their bridge
    The returned state and code verifier are needed again for the token exchange
    and to check the state Hue sends back.
    """
    code_verifier = generate_code_verifier()
    composed_state = compose_state(state)

    params = [
        ('client_id', client_id),
        ('response_type', 'code'),
        ('code_challenge_method', 'S256'),
        ('code_challenge', code_challenge_for(code_verifier)),
        ('state', composed_state),
        ('redirect_uri', redirect_uri),
    ]
    if device_name:
        params.append(('device_name', device_name))

    logger.info(f"[REMOTE AUTH] Authorization request prepared for client {client_id}")
    return AuthorizationRequest(
        url=f"{AUTHORIZE_URL}?{urlencode(params)}",
        state=composed_state,
        code_verifier=code_verifier,
    )


def _state_secret(state: str) -> str:
    return state.split('-', 1)[0]


def verify_state(expected: str, returned: Optional[str]) -> bool:
    """
    Compare the state Hue round-tripped with the one we sent
    `expected` may be the full composed state or only its numeric secret
    """
    if not expected or not returned:
        return False
    if '-' in expected:
        return hmac.compare_digest(expected.encode(), returned.encode())
    return hmac.compare_digest(expected.encode(), _state_secret(returned).encode())
