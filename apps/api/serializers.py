"""
Marketplace API Serializers
Input validation for checkout and gift cards, output shapes for orders and loyalty.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.giftcards.models import GiftCard
from apps.orders.models import Order, OrderItem


class CartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=1000)


class CheckoutInputSerializer(serializers.Serializer):
    """Cart contents and discount selections submitted by the checkout UI"""

    items = CartItemInputSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    shipping_address = serializers.DictField(required=False, default=dict)
    billing_address = serializers.DictField(required=False, default=dict)
    loyalty_points_to_redeem = serializers.IntegerField(min_value=0, required=False, default=0)
    gift_card_code = serializers.CharField(max_length=19, required=False, allow_blank=True, default='')
    gift_card_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True, default=None
    )
    shipping_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, default=Decimal('0')
    )
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


class PaymentConfirmationInputSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    payment_reference = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class GiftCardPurchaseInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    recipient_email = serializers.EmailField(required=False, allow_blank=True, default='')
    message = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class OrderItemSerializer(serializers.ModelSerializer):
    """Order item with pricing snapshot for API responses"""

    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'vendor', 'product_name', 'product_sku', 'unit_price', 'quantity', 'line_total']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    shipping_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status', 'payment_method', 'currency',
            'subtotal', 'discount_amount', 'shipping_amount', 'tax_amount', 'total',
            'loyalty_points_redeemed', 'gift_card_code',
            'created_at', 'paid_at', 'delivered_at', 'items',
        ]


class GiftCardSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = GiftCard
        fields = ['id', 'code', 'amount', 'balance', 'status', 'recipient_email', 'expires_at']


class LoyaltyAccountSerializer(serializers.Serializer):
    points = serializers.IntegerField()
    lifetime_points = serializers.IntegerField()
    tier = serializers.CharField()
    next_tier_points = serializers.IntegerField()
    points_to_next_tier = serializers.IntegerField()
    redemption_value = serializers.DecimalField(max_digits=12, decimal_places=2)
