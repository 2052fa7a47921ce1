from rest_framework import serializers

from marketplace.logistics.domain.models import Shipment


class ShipmentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True, default=None)

    class Meta:
        model = Shipment
        fields = [
            "id",
            "shipment_number",
            "tenant",
            "order",
            "order_number",
            "created_by",
            "cargo",
            "quantity",
            "unit",
            "origin",
            "origin_port",
            "destination",
            "destination_port",
            "vessel",
            "vessel_type",
            "eta",
            "status",
            "tracking_events",
            "created_at",
            "updated_at",
            "departed_at",
            "delivered_at",
        ]
        read_only_fields = fields


class CreateShipmentRequestSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(required=False, allow_null=True)
    cargo = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, required=False, allow_null=True)
    unit = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    origin = serializers.CharField(max_length=120)
    origin_port = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    destination = serializers.CharField(max_length=120)
    destination_port = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    vessel = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    vessel_type = serializers.ChoiceField(choices=Shipment.VESSEL_TYPE_CHOICES, default="SHIP")
    eta = serializers.DateTimeField(required=False, allow_null=True)


class ShipmentStatusRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Shipment.STATUS_CHOICES)
    location = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    event = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    eta = serializers.DateTimeField(required=False, allow_null=True)


class TrackingEventRequestSerializer(serializers.Serializer):
    event = serializers.CharField(max_length=200)
    location = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")


class ShipmentQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Shipment.STATUS_CHOICES, required=False)
    order = serializers.UUIDField(required=False)
