"""
With these settings, tests run faster.
"""

from .base import *  # noqa: F403
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#secret-key
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="Qx4tZk2bN9rLwEo7VfY1sPjH6uCm3aGd8nKiT0yRzXeB5vWqFhSlUoJpMcIgDA12",
)
# https://docs.djangoproject.com/en/dev/ref/settings/#test-runner
TEST_RUNNER = "django.test.runner.DiscoverRunner"

# DATABASES
# ------------------------------------------------------------------------------
DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}}

# djangorestframework-simplejwt
# ------------------------------------------------------------------------------
SIMPLE_JWT = {**SIMPLE_JWT, "SIGNING_KEY": SECRET_KEY}  # noqa: F405

# Classroom rooms
# ------------------------------------------------------------------------------
CLASSROOM_DEFAULT_MAX_SEATS = 5
CLASSROOM_DANGER_ALERT_MESSAGE = "A dangerous situation has been reported"
# Your stuff...
# ------------------------------------------------------------------------------
