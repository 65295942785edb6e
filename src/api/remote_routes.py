"""
Remote authorization routes - consent URL and token exchanges
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional
import asyncio
import logging

from config_loader import remote_auth_enabled
from errors import ExpiredRefreshTokenError, TransportError
from remote_auth.authorization import build_authorization_request

logger = logging.getLogger(__name__)


class AuthorizationResponse(BaseModel):
    url: str
    state: str
    code_verifier: str


class TokenRequest(BaseModel):
    code: str
    code_verifier: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    expires_in: int
    refresh_token: str
    token_type: str
    expiration_date: str


def create_remote_routes(config, token_service):
    """Create remote authorization routes"""
    router = APIRouter(prefix="/api/remote", tags=["remote"])
    remote = config['remote']

    def _require_remote():
        if not remote_auth_enabled(config):
            raise HTTPException(status_code=503, detail="Remote access is not configured")

    def _token_response(token_set) -> TokenResponse:
        if token_set is None:
            raise HTTPException(status_code=502, detail="Token grant refused or incomplete")
        return TokenResponse(**token_set.to_json())

    @router.get("/authorize", response_model=AuthorizationResponse)
    async def authorize(state: Optional[str] = None, device_name: Optional[str] = None):
        """Build the URL the user visits to grant remote access"""
        _require_remote()
        request = build_authorization_request(
            client_id=remote['client_id'],
            redirect_uri=remote['redirect_uri'],
            device_name=device_name or remote.get('device_name'),
            state=state
        )
        return AuthorizationResponse(url=request.url, state=request.state, code_verifier=request.code_verifier)

    @router.post("/token", response_model=TokenResponse)
    async def fetch_token(request: TokenRequest):
        """Trade the authorization code for a token set"""
        _require_remote()
        try:
            token_set = await token_service.fetch_remote_token(
                client_id=remote['client_id'],
                client_secret=remote.get('client_secret') or '',
                code_verifier=request.code_verifier,
                code=request.code
            )
        except TransportError as e:
            logger.error(f"[REMOTE AUTH] Token endpoint unreachable: {e}")
            raise HTTPException(status_code=502, detail=str(e))
        except asyncio.TimeoutError:
            logger.error("[REMOTE AUTH] Token endpoint timed out")
            raise HTTPException(status_code=502, detail="Token endpoint timed out")
        return _token_response(token_set)

    @router.post("/token/refresh", response_model=TokenResponse)
    async def refresh_token(request: RefreshRequest):
        """Refresh the token set"""
        _require_remote()
        try:
            token_set = await token_service.refresh_remote_token(
                client_id=remote['client_id'],
                client_secret=remote.get('client_secret') or '',
                refresh_token=request.refresh_token
            )
        except ExpiredRefreshTokenError as e:
            raise HTTPException(status_code=401, detail=str(e))
        except TransportError as e:
            logger.error(f"[REMOTE AUTH] Token endpoint unreachable: {e}")
            raise HTTPException(status_code=502, detail=str(e))
        except asyncio.TimeoutError:
            logger.error("[REMOTE AUTH] Token endpoint timed out")
            raise HTTPException(status_code=502, detail="Token endpoint timed out")
        return _token_response(token_set)

    return router
