"""Tests for identity resolution and the admin key check."""

from datetime import timedelta

import pytest
from jose import jwt

from conftest import bearer, session
from trellis.errors import AuthRequired, InvalidRequest
from trellis.identity import (
    Identity,
    authenticated_user_id,
    create_access_token,
    decode_user_id,
    identity_key,
)


class TestIdentity:

    def test_key_prefers_user_id(self):
        assert Identity(user_id="u1", session_id="s1").key == "u1"
        assert Identity(session_id="s1").key == "s1"
        assert Identity().key is None

    def test_is_authenticated(self):
        assert Identity(user_id="u1").is_authenticated
        assert not Identity(session_id="s1").is_authenticated

    def test_identity_key_requires_someone(self):
        with pytest.raises(InvalidRequest):
            identity_key(Identity())

    def test_authenticated_user_id(self):
        assert authenticated_user_id(Identity(user_id="u1", session_id="s1")) == "u1"
        with pytest.raises(AuthRequired):
            authenticated_user_id(Identity(session_id="s1"))


class TestTokens:

    def test_round_trip(self):
        assert decode_user_id(create_access_token("user-42")) == "user-42"

    def test_expired_token_rejected(self):
        token = create_access_token("user-42", expires_delta=timedelta(minutes=-1))
        with pytest.raises(AuthRequired):
            decode_user_id(token)

    def test_wrong_signature_rejected(self):
        token = jwt.encode({"sub": "user-42"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(AuthRequired):
            decode_user_id(token)

    def test_token_without_subject_rejected(self, store_config):
        token = jwt.encode({"role": "x"}, store_config.secret_key, algorithm="HS256")
        with pytest.raises(AuthRequired):
            decode_user_id(token)


class TestIdentityOverHttp:

    def test_malformed_bearer_is_401_not_anonymous(self, client, products):
        response = client.get("/api/recently-viewed", headers={"Authorization": "Bearer garbage", **session("s1")})
        assert response.status_code == 401

    def test_blank_session_header_is_no_identity(self, client, products):
        response = client.get("/api/recently-viewed", headers=session("   "))
        assert response.status_code == 400

    def test_bearer_alone_identifies(self, client, products):
        response = client.get("/api/recently-viewed", headers=bearer("user-1"))
        assert response.status_code == 200
        assert response.json() == []
