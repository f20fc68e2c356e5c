"""
Loyalty API Serializers
Redemption submission and actions, points adjustment, catalog and ledger reads.
"""

from rest_framework import serializers

from apps.common.constants import (
    MAX_ITEMS_PER_REDEMPTION,
    MAX_MANUAL_ADJUSTMENT_POINTS,
    MAX_QUANTITY_PER_REDEMPTION_LINE,
)

# ===============================================================================
# INPUT SERIALIZERS
# ===============================================================================


class RedemptionLineInputSerializer(serializers.Serializer):
    loyaltyProductId = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY_PER_REDEMPTION_LINE)


class RedemptionCreateInputSerializer(serializers.Serializer):
    opticianId = serializers.UUIDField()
    items = serializers.ListField(
        child=RedemptionLineInputSerializer(), allow_empty=False, max_length=MAX_ITEMS_PER_REDEMPTION
    )

    def to_service_items(self) -> list[dict]:
        return [
            {'loyalty_product_id': line['loyaltyProductId'], 'quantity': line['quantity']}
            for line in self.validated_data['items']
        ]


class RedemptionRejectInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')


class RedemptionActionInputSerializer(serializers.Serializer):
    """Tagged back-office action on a redemption"""

    STATUS_APPROVE = 'approve'
    STATUS_REJECT = 'reject'
    STATUS_CANCEL = 'cancel'

    redemptionId = serializers.UUIDField()
    status = serializers.ChoiceField(choices=[STATUS_APPROVE, STATUS_REJECT, STATUS_CANCEL])
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')


class PointsAdjustInputSerializer(serializers.Serializer):
    points = serializers.IntegerField(min_value=-MAX_MANUAL_ADJUSTMENT_POINTS, max_value=MAX_MANUAL_ADJUSTMENT_POINTS)
    reason = serializers.CharField(max_length=255)

    def validate_points(self, value: int) -> int:
        if value == 0:
            raise serializers.ValidationError("Adjustment must be non-zero")
        return value


# ===============================================================================
# OUTPUT SERIALIZERS
# ===============================================================================


class RedemptionItemSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    loyaltyProductId = serializers.UUIDField(source='loyalty_product_id', read_only=True)
    productName = serializers.CharField(source='product_name', read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    pointsCost = serializers.IntegerField(source='points_cost', read_only=True)
    totalPoints = serializers.IntegerField(source='total_points', read_only=True)


class RedemptionSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    opticianId = serializers.UUIDField(source='optician_id', read_only=True)
    opticianName = serializers.CharField(source='optician.business_name', read_only=True)
    status = serializers.CharField(read_only=True)
    totalPoints = serializers.IntegerField(source='total_points', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    resolvedAt = serializers.DateTimeField(source='resolved_at', read_only=True)
    rejectionReason = serializers.CharField(source='rejection_reason', read_only=True)
    items = RedemptionItemSerializer(many=True, read_only=True)


class PointsLedgerEntrySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    delta = serializers.IntegerField(read_only=True)
    reason = serializers.CharField(read_only=True)
    referenceId = serializers.CharField(source='reference_id', read_only=True)
    note = serializers.CharField(read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)


class LoyaltyProductSerializer(serializers.Serializer):
    """Catalog entry with stock projected from the linked product"""

    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    pointsCost = serializers.IntegerField(source='points_cost', read_only=True)
    productId = serializers.UUIDField(source='product_id', read_only=True, allow_null=True)
    stockQty = serializers.IntegerField(source='available_stock', read_only=True)
