from __future__ import annotations

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.core.management.base import CommandError
from django.core.management.base import CommandParser
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken


class Command(BaseCommand):
    help = "Mint a signed access token accepted by the classroom socket server"

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("username", help="Display name embedded in the token")
        parser.add_argument(
            "--user-id",
            dest="user_id",
            help="Value of the user id claim (defaults to the username)",
        )
        parser.add_argument(
            "--lifetime-days",
            dest="lifetime_days",
            type=int,
            default=None,
            help=(
                "Token lifetime in days. "
                "Omit to use SIMPLE_JWT['ACCESS_TOKEN_LIFETIME']; "
                "long-lived tokens are meant for classroom devices."
            ),
        )

    def handle(self, *args, **options) -> str | None:
        username: str = options["username"]
        user_id: str = options.get("user_id") or username
        lifetime_days: int | None = options.get("lifetime_days")

        token = AccessToken()
        token[api_settings.USER_ID_CLAIM] = user_id
        token["username"] = username
        if lifetime_days is not None:
            if lifetime_days <= 0:
                msg = "--lifetime-days must be positive"
                raise CommandError(msg)
            token.set_exp(lifetime=timedelta(days=lifetime_days))

        # Print the token only
        self.stdout.write(str(token))
        return None
