"""
Remote (cloud relay) authorization: PKCE consent URL and token exchanges
"""

from .authorization import AuthorizationRequest, build_authorization_request, verify_state
from .models import RemoteTokenSet
from .tokens import TokenService

__all__ = ['AuthorizationRequest', 'RemoteTokenSet', 'TokenService', 'build_authorization_request', 'verify_state']
