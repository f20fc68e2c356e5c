"""
Order API Serializers for the optical marketplace
Strict input shapes for basket submission and item actions, plus read-only
representations of orders with their derived status.
"""

from rest_framework import serializers

from apps.common.constants import MAX_ITEMS_PER_ORDER, MAX_QUANTITY_PER_LINE

# ===============================================================================
# INPUT SERIALIZERS
# ===============================================================================


class OrderLineInputSerializer(serializers.Serializer):
    productId = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY_PER_LINE)


class OrderCreateInputSerializer(serializers.Serializer):
    """Basket submitted by an optician"""

    opticianId = serializers.UUIDField()
    items = serializers.ListField(
        child=OrderLineInputSerializer(), allow_empty=False, max_length=MAX_ITEMS_PER_ORDER
    )
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000, default='')

    def to_service_items(self) -> list[dict]:
        return [
            {'product_id': line['productId'], 'quantity': line['quantity']}
            for line in self.validated_data['items']
        ]


class OrderItemActionInputSerializer(serializers.Serializer):
    """Tagged back-office action on a single order line"""

    ACTION_CONFIRM = 'confirm'
    ACTION_CANCEL = 'cancel'

    itemId = serializers.UUIDField()
    action = serializers.ChoiceField(choices=[ACTION_CONFIRM, ACTION_CANCEL])


# ===============================================================================
# OUTPUT SERIALIZERS
# ===============================================================================


class OrderItemSerializer(serializers.Serializer):
    """Order line with its pricing snapshot"""

    id = serializers.UUIDField(read_only=True)
    orderId = serializers.UUIDField(source='order_id', read_only=True)
    productId = serializers.UUIDField(source='product_id', read_only=True)
    productName = serializers.CharField(source='product_name', read_only=True)
    productReference = serializers.CharField(source='product_reference', read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    unitPriceCents = serializers.IntegerField(source='unit_price_cents', read_only=True)
    discountPct = serializers.DecimalField(source='discount_pct', max_digits=5, decimal_places=2, read_only=True)
    salePriceCents = serializers.IntegerField(source='sale_price_cents', read_only=True)
    lineTotalCents = serializers.IntegerField(source='line_total_cents', read_only=True)
    status = serializers.CharField(read_only=True)
    pointsAwarded = serializers.IntegerField(source='points_awarded', read_only=True)
    resolvedAt = serializers.DateTimeField(source='resolved_at', read_only=True)
    # Current stock, a hint for the back office; confirmation re-checks atomically
    stockQty = serializers.IntegerField(source='product.stock_qty', read_only=True)


class OrderSerializer(serializers.Serializer):
    """Order with status and counts derived from its lines"""

    id = serializers.UUIDField(read_only=True)
    opticianId = serializers.UUIDField(source='optician_id', read_only=True)
    opticianName = serializers.CharField(source='optician.business_name', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    notes = serializers.CharField(read_only=True)
    status = serializers.CharField(source='aggregate_status', read_only=True)
    pendingCount = serializers.IntegerField(source='pending_count', read_only=True)
    confirmedCount = serializers.IntegerField(source='confirmed_count', read_only=True)
    cancelledCount = serializers.IntegerField(source='cancelled_count', read_only=True)
    totalQuantity = serializers.IntegerField(source='total_quantity', read_only=True)
    totalCents = serializers.IntegerField(source='total_cents', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
