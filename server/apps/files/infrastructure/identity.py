"""Identity resolution from bearer tokens.

Tokens are issued elsewhere. They are HS256 JWTs signed with a base64
encoded shared secret and carry the claims ``sub`` (username), ``id``,
``company`` and ``role``.
"""

import base64
import binascii
import logging
from typing import Final, final

import jwt
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.http import HttpRequest

from server.apps.files.entities import Identity

logger = logging.getLogger(__name__)

_BEARER_PREFIX: Final = 'Bearer '


@final
class TokenDecoder:
    """Verifies bearer tokens and turns their claims into an identity."""

    def __init__(self, secret: str, algorithm: str = 'HS256') -> None:
        """Initialize token decoder.

        Args:
            secret: Base64 encoded signing secret.
            algorithm: JWT signing algorithm.

        Raises:
            ImproperlyConfigured: If the secret is not valid base64.
        """
        try:
            self._key = base64.b64decode(secret, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImproperlyConfigured(
                'JWT_SECRET must be base64 encoded',
            ) from exc
        self._algorithm = algorithm

    def resolve(self, token: str | None) -> Identity | None:
        """Resolve a token into an identity.

        Args:
            token: Raw JWT, may be None.

        Returns:
            Identity, or None for a missing, invalid or expired token.
        """
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                options={'require': ['sub', 'id']},
            )
        except jwt.ExpiredSignatureError:
            logger.info('Rejected expired token')
            return None
        except jwt.InvalidTokenError as exc:
            logger.warning('Rejected invalid token: %s', exc)
            return None

        return Identity(
            user_id=str(claims['id']),
            username=str(claims['sub']),
            company=str(claims.get('company') or ''),
            role=str(claims.get('role') or ''),
        )


def extract_token(request: HttpRequest) -> str | None:
    """Read the bearer token from the Authorization header.

    Args:
        request: Incoming request.

    Returns:
        Token without the 'Bearer ' prefix, or None.
    """
    header = request.headers.get('Authorization', '')
    if not header.startswith(_BEARER_PREFIX):
        return None
    return header.removeprefix(_BEARER_PREFIX).strip() or None


def build_token_decoder() -> TokenDecoder:
    """Create a decoder from the ``JWT_*`` settings."""
    return TokenDecoder(settings.JWT_SECRET, settings.JWT_ALGORITHM)
