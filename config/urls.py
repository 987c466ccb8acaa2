from django.urls import path

from .health import health as health_view

urlpatterns = [
    path("health/", health_view, name="health"),
]
