from datetime import timedelta

import jwt
import pytest
from django.conf import settings
from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from classroom_hub.realtime.identity import extract_token
from classroom_hub.realtime.identity import verify_token
from classroom_hub.rooms.errors import Unauthenticated


def make_token(**claims) -> AccessToken:
    token = AccessToken()
    token["id"] = "42"
    token["username"] = "instructor"
    for key, value in claims.items():
        token[key] = value
    return token


class TestExtractToken:
    def test_auth_payload(self):
        assert extract_token({}, {"token": "abc"}) == "abc"

    def test_asgi_query_string(self):
        environ = {"asgi.scope": {"query_string": b"EIO=4&token=abc"}}
        assert extract_token(environ, None) == "abc"

    def test_wsgi_query_string(self):
        assert extract_token({"QUERY_STRING": "token=abc"}, None) == "abc"

    def test_auth_wins_over_query(self):
        environ = {"QUERY_STRING": "token=from-query"}
        assert extract_token(environ, {"token": "from-auth"}) == "from-auth"

    @pytest.mark.parametrize(
        ("environ", "auth"),
        [
            ({}, None),
            ({}, {"token": ""}),
            ({}, {"token": 123}),
            ({"QUERY_STRING": "other=1"}, "token"),
        ],
    )
    def test_missing(self, environ, auth):
        assert extract_token(environ, auth) is None


class TestVerifyToken:
    def test_valid_token(self):
        identity = verify_token(str(make_token()))

        assert identity.user_id == "42"
        assert identity.username == "instructor"
        assert identity.claims["token_type"] == "access"
        assert identity.as_session() == {"user_id": "42", "username": "instructor"}

    def test_missing_token(self):
        with pytest.raises(Unauthenticated) as excinfo:
            verify_token(None)
        assert excinfo.value.reason == "unauthorized"

    def test_expired_token(self):
        token = make_token()
        token.set_exp(lifetime=timedelta(seconds=-60))

        with pytest.raises(Unauthenticated) as excinfo:
            verify_token(str(token))
        assert excinfo.value.reason == "jwt_expired"

    def test_tampered_token(self):
        raw = str(make_token())
        header, payload, signature = raw.split(".")
        forged = f"{header}.{payload}.{signature[::-1]}"

        with pytest.raises(Unauthenticated):
            verify_token(forged)

    def test_garbage(self):
        with pytest.raises(Unauthenticated):
            verify_token("not-a-jwt")

    def test_token_from_external_issuer(self):
        now = timezone.now()
        raw = jwt.encode(
            {
                "id": "u1",
                "username": "instructor",
                "iat": now,
                "exp": now + timedelta(hours=1),
            },
            settings.SIMPLE_JWT["SIGNING_KEY"],
            algorithm="HS256",
        )

        identity = verify_token(raw)

        assert identity.user_id == "u1"
        assert identity.username == "instructor"
        assert "token_type" not in identity.claims
        assert "jti" not in identity.claims

    def test_external_token_with_wrong_secret(self):
        now = timezone.now()
        raw = jwt.encode(
            {"id": "u1", "iat": now, "exp": now + timedelta(hours=1)},
            "some-other-secret",
            algorithm="HS256",
        )

        with pytest.raises(Unauthenticated):
            verify_token(raw)

    def test_expired_external_token(self):
        now = timezone.now()
        raw = jwt.encode(
            {"id": "u1", "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1)},
            settings.SIMPLE_JWT["SIGNING_KEY"],
            algorithm="HS256",
        )

        with pytest.raises(Unauthenticated) as excinfo:
            verify_token(raw)
        assert excinfo.value.reason == "jwt_expired"
