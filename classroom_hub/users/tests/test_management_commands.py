from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from classroom_hub.realtime.identity import verify_token


def test_issue_token_is_accepted_by_the_socket_server():
    out = StringIO()

    call_command("issue_token", "instructor", "--user-id", "12", stdout=out)

    identity = verify_token(out.getvalue().strip())
    assert identity.user_id == "12"
    assert identity.username == "instructor"


def test_issue_token_defaults_user_id_to_username():
    out = StringIO()

    call_command("issue_token", "tablet-3", "--lifetime-days", "365", stdout=out)

    identity = verify_token(out.getvalue().strip())
    assert identity.user_id == "tablet-3"
    assert identity.claims["exp"] - identity.claims["iat"] == 365 * 24 * 60 * 60


def test_issue_token_rejects_non_positive_lifetime():
    with pytest.raises(CommandError):
        call_command("issue_token", "instructor", "--lifetime-days", "0")
