"""Tests for bearer token identity resolution."""

import datetime as dt

import jwt
import pytest
from django.core.exceptions import ImproperlyConfigured
from django.test import RequestFactory

from server.apps.files.entities import Identity
from server.apps.files.infrastructure.identity import (
    TokenDecoder,
    build_token_decoder,
    extract_token,
)

_SECRET = 'dGVzdC1zZWNyZXQta2V5LWZvci10aGUtZmlsZS1zdG9yZS1zdWl0ZQ=='
_KEY = b'test-secret-key-for-the-file-store-suite'


def _token(key=_KEY, **claims):
    payload = {
        'sub': 'alice',
        'id': 'u1',
        'company': 'Acme',
        'role': 'USER',
    }
    payload.update(claims)
    return jwt.encode(payload, key, algorithm='HS256')


@pytest.fixture
def decoder():
    """Token decoder with the test secret."""
    return TokenDecoder(_SECRET)


class TestResolve:
    """Tests for TokenDecoder.resolve."""

    def test_valid_token(self, decoder):
        """Test claims become an identity."""
        identity = decoder.resolve(_token())

        assert identity == Identity(
            user_id='u1',
            username='alice',
            company='Acme',
            role='USER',
        )

    def test_numeric_id(self, decoder):
        """Test numeric user ids are turned into strings."""
        identity = decoder.resolve(_token(id=42))

        assert identity is not None
        assert identity.user_id == '42'

    def test_optional_claims(self, decoder):
        """Test missing company and role default to blank."""
        token = jwt.encode({'sub': 'bob', 'id': 'u2'}, _KEY, 'HS256')

        identity = decoder.resolve(token)

        assert identity == Identity(user_id='u2', username='bob')

    def test_missing_token(self, decoder):
        """Test no token means no identity."""
        assert decoder.resolve(None) is None
        assert decoder.resolve('') is None

    def test_expired_token(self, decoder):
        """Test expired tokens are rejected."""
        expired = dt.datetime.now(dt.UTC) - dt.timedelta(minutes=5)

        assert decoder.resolve(_token(exp=expired)) is None

    def test_wrong_signature(self, decoder):
        """Test tokens signed with another key are rejected."""
        forged = _token(key=b'another-secret-key-that-is-long-enough')

        assert decoder.resolve(forged) is None

    def test_garbage(self, decoder):
        """Test malformed tokens are rejected."""
        assert decoder.resolve('not.a.token') is None

    def test_required_claims(self, decoder):
        """Test tokens without subject or id are rejected."""
        no_id = jwt.encode({'sub': 'alice'}, _KEY, 'HS256')
        no_sub = jwt.encode({'id': 'u1'}, _KEY, 'HS256')

        assert decoder.resolve(no_id) is None
        assert decoder.resolve(no_sub) is None


def test_secret_must_be_base64():
    """Test a non base64 secret is a configuration error."""
    with pytest.raises(ImproperlyConfigured):
        TokenDecoder('not base64 at all!')


def test_build_from_settings(settings):
    """Test the decoder uses the JWT settings."""
    settings.JWT_SECRET = _SECRET

    assert build_token_decoder().resolve(_token()) is not None


class TestExtractToken:
    """Tests for reading the Authorization header."""

    def test_bearer(self, rf: RequestFactory):
        """Test the bearer prefix is stripped."""
        request = rf.get('/', HTTP_AUTHORIZATION='Bearer abc.def')

        assert extract_token(request) == 'abc.def'

    def test_missing_header(self, rf: RequestFactory):
        """Test no header means no token."""
        assert extract_token(rf.get('/')) is None

    def test_other_scheme(self, rf: RequestFactory):
        """Test other schemes are ignored."""
        request = rf.get('/', HTTP_AUTHORIZATION='Basic dXNlcjpwYXNz')

        assert extract_token(request) is None

    def test_empty_bearer(self, rf: RequestFactory):
        """Test a bare prefix is no token."""
        request = rf.get('/', HTTP_AUTHORIZATION='Bearer ')

        assert extract_token(request) is None
