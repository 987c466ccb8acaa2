"""Validation of inbound Socket.IO event payloads.

Field names follow the wire (camelCase); `source` maps them onto the
snake_case keys the engine works with.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from classroom_hub.rooms.state import Role


class RoomIdField(serializers.CharField):
    def __init__(self, **kwargs):
        kwargs.setdefault("trim_whitespace", False)
        kwargs.setdefault("max_length", 255)
        super().__init__(**kwargs)


class RoomEventSerializer(serializers.Serializer):
    room = RoomIdField()


class OptionalRoomEventSerializer(serializers.Serializer):
    room = RoomIdField(required=False, allow_null=True, allow_blank=True)


class JoinSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[r.value for r in Role])
    room = RoomIdField()
    username = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    maxClients = serializers.IntegerField(  # noqa: N815
        source="max_seats",
        required=False,
        allow_null=True,
        min_value=0,
    )
    seatIndex = serializers.IntegerField(  # noqa: N815
        source="seat_index",
        required=False,
        allow_null=True,
    )
    recipeId = serializers.CharField(  # noqa: N815
        source="content_id",
        required=False,
        allow_null=True,
        allow_blank=True,
    )

    def validate_role(self, value):
        return Role(value)


class StartSessionSerializer(RoomEventSerializer):
    recipeId = serializers.CharField(source="content_id", allow_blank=True)  # noqa: N815


class RelaySerializer(RoomEventSerializer):
    """Fields shared by every event relayed to hosts."""

    userId = serializers.CharField(source="user_id", allow_blank=True)  # noqa: N815


class SessionResponseSerializer(RelaySerializer):
    type = serializers.CharField(allow_blank=True)
    status = serializers.CharField(allow_blank=True)


class StudentProgressSerializer(RelaySerializer):
    username = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    seatIndex = serializers.IntegerField(  # noqa: N815
        source="seat_index",
        required=False,
        allow_null=True,
    )
    currentStep = serializers.IntegerField(source="current_step")  # noqa: N815
    recipeId = serializers.CharField(  # noqa: N815
        source="content_id",
        required=False,
        allow_null=True,
        allow_blank=True,
    )


class DangerAlertSerializer(RelaySerializer):
    username = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    seatIndex = serializers.IntegerField(  # noqa: N815
        source="seat_index",
        required=False,
        allow_null=True,
    )
    message = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class SendJsonSerializer(RelaySerializer):
    # `message` and `payload` are relayed untouched.
    message = serializers.JSONField(allow_null=True)
    payload = serializers.JSONField(required=False, allow_null=True)
    seatIndex = serializers.IntegerField(  # noqa: N815
        source="seat_index",
        required=False,
        allow_null=True,
    )


class ChangeSeatSerializer(RoomEventSerializer):
    newSeatIndex = serializers.IntegerField(source="new_seat_index")  # noqa: N815


class LeaveRoomSerializer(serializers.Serializer):
    roomName = RoomIdField(source="room")  # noqa: N815


def validate_event(serializer_class, data) -> dict:
    """Run `serializer_class` over `data` and return its validated mapping.

    Raises ``serializers.ValidationError`` for non-dict or invalid payloads.
    """

    if not isinstance(data, dict):
        msg = _("Event payload must be an object.")
        raise serializers.ValidationError({"non_field_errors": [msg]})
    serializer = serializer_class(data=data)
    serializer.is_valid(raise_exception=True)
    return dict(serializer.validated_data)
