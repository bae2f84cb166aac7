"""Tests for HS256 token verification."""

import pytest

from zenvi.auth.verifier import JwtTokenVerifier, username_from_claims
from zenvi.errors import ApiErrorCode, UnauthorizedError
from tests.helpers import (
    TEST_AUDIENCE,
    TEST_ISSUER,
    TEST_JWT_SECRET,
    create_test_user_id,
    mint_expired_token,
    mint_test_token,
    mint_token_with_bad_signature,
)


@pytest.fixture
def verifier() -> JwtTokenVerifier:
    return JwtTokenVerifier(
        secret=TEST_JWT_SECRET, issuer=TEST_ISSUER + "/", audiences=[TEST_AUDIENCE]
    )


class TestJwtTokenVerifier:
    def test_valid_token_returns_claims(self, verifier):
        user_id = create_test_user_id()
        claims = verifier.verify(mint_test_token(user_id))

        assert claims["sub"] == str(user_id)
        assert claims["iss"] == TEST_ISSUER

    def test_expired_token_rejected(self, verifier):
        with pytest.raises(UnauthorizedError, match="Token expired"):
            verifier.verify(mint_expired_token(create_test_user_id()))

    def test_token_within_clock_skew_accepted(self, verifier):
        user_id = create_test_user_id()
        claims = verifier.verify(mint_test_token(user_id, expires_in=-30))

        assert claims["sub"] == str(user_id)

    def test_bad_signature_rejected(self, verifier):
        with pytest.raises(UnauthorizedError, match="signature"):
            verifier.verify(mint_token_with_bad_signature(create_test_user_id()))

    def test_wrong_issuer_rejected(self, verifier):
        token = mint_test_token(create_test_user_id(), issuer="someone-else")
        with pytest.raises(UnauthorizedError, match="issuer"):
            verifier.verify(token)

    def test_wrong_audience_rejected(self, verifier):
        token = mint_test_token(create_test_user_id(), audience="other-api")
        with pytest.raises(UnauthorizedError, match="audience"):
            verifier.verify(token)

    def test_garbage_rejected(self, verifier):
        with pytest.raises(UnauthorizedError) as exc_info:
            verifier.verify("not.a.jwt")

        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED

    def test_non_uuid_subject_rejected(self, verifier):
        with pytest.raises(UnauthorizedError, match="sub is not a valid UUID"):
            verifier.verify(mint_test_token("alice"))


class TestUsernameFromClaims:
    def test_preferred_username_first(self):
        claims = {"preferred_username": "alice", "email": "bob@example.com"}
        assert username_from_claims(claims) == "alice"

    def test_email_local_part(self):
        assert username_from_claims({"email": "carol@example.com"}) == "carol"

    def test_blank_claims_skipped(self):
        assert username_from_claims({"username": "  ", "email": "dave@x.io"}) == "dave"

    def test_nothing_usable(self):
        assert username_from_claims({"sub": "x"}) is None
