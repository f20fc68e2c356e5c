from rest_framework import serializers

from apps.common.constants import MAX_QUANTITY_PER_LINE


class RestockInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY_PER_LINE)
