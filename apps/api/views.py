"""
Marketplace API Views
DRF endpoints for checkout, payment confirmation, order lookup, loyalty and gift cards.
"""

import json
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from apps.common.types import (
    BusinessError,
    GiftCardError,
    InsufficientPoints,
    InsufficientStock,
    InvalidStatusTransition,
    NotFoundError,
    TransactionFailure,
    ValidationError,
)
from apps.giftcards.services import GiftCardIssueData, GiftCardService
from apps.loyalty.services import LoyaltyService
from apps.orders.checkout import CartItem, CheckoutRequest, CheckoutService
from apps.orders.services import OrderQueryService, OrderStatusService

from .serializers import (
    CheckoutInputSerializer,
    GiftCardPurchaseInputSerializer,
    GiftCardSerializer,
    LoyaltyAccountSerializer,
    OrderSerializer,
    PaymentConfirmationInputSerializer,
)
from .webhooks import verify_hmac_signature

logger = logging.getLogger(__name__)

PAYMENT_SIGNATURE_HEADER = 'HTTP_X_PAYMENT_SIGNATURE'

# Most specific first; InvalidGiftCard is both a NotFoundError and a GiftCardError
ERROR_STATUS_MAP: list[tuple[type[BusinessError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InsufficientStock, status.HTTP_409_CONFLICT),
    (InvalidStatusTransition, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientPoints, status.HTTP_400_BAD_REQUEST),
    (GiftCardError, status.HTTP_400_BAD_REQUEST),
    (TransactionFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def error_response(error: BusinessError) -> Response:
    """Render a BusinessError with the matching HTTP status"""
    http_status = next(
        (code for error_class, code in ERROR_STATUS_MAP if isinstance(error, error_class)),
        status.HTTP_400_BAD_REQUEST,
    )
    return Response({'success': False, 'error': error.to_dict()}, status=http_status)


def invalid_input_response(errors: dict) -> Response:
    return Response({
        'success': False,
        'error': {'code': ValidationError.code, 'message': 'Invalid input', 'fields': errors},
    }, status=status.HTTP_422_UNPROCESSABLE_ENTITY)


# 🔒 SECURITY: Custom throttle classes for marketplace endpoints
class CheckoutThrottle(ScopedRateThrottle):
    """Throttling for order placement"""
    scope = 'checkout'


class PaymentWebhookThrottle(ScopedRateThrottle):
    """Throttling for payment provider callbacks"""
    scope = 'payment_webhook'


# ===============================================================================
# ORDERS
# ===============================================================================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([CheckoutThrottle])
def checkout(request: Request) -> Response:
    """
    Place an order from the submitted cart.
    Prices and stock are server-authoritative; the client only sends product ids and quantities.
    """
    serializer = CheckoutInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    data = serializer.validated_data
    checkout_request = CheckoutRequest(
        user_id=request.user.pk,
        user_email=request.user.email or '',
        items=[CartItem(product_id=item['product_id'], quantity=item['quantity']) for item in data['items']],
        payment_method=data['payment_method'],
        shipping_address=data['shipping_address'],
        billing_address=data['billing_address'],
        loyalty_points_to_redeem=data['loyalty_points_to_redeem'],
        gift_card_code=data['gift_card_code'],
        gift_card_amount=data['gift_card_amount'],
        shipping_amount=data['shipping_amount'],
        notes=data['notes'],
    )

    logger.info(f"🛒 [API] Checkout request from user {request.user.pk} ({len(checkout_request.items)} lines)")
    result = CheckoutService().place_order(checkout_request)
    if result.is_err():
        return error_response(result.error)

    order = result.unwrap()
    detail = OrderQueryService.get_order_with_items(order.id).unwrap()
    return Response({'success': True, 'order': OrderSerializer(detail).data}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request: Request, order_id: str) -> Response:
    result = OrderQueryService.get_order_with_items(order_id, user=request.user)
    if result.is_err():
        return error_response(result.error)
    return Response({'success': True, 'order': OrderSerializer(result.unwrap()).data})


# ===============================================================================
# PAYMENTS
# ===============================================================================

@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])  # Authenticated by HMAC signature
@throttle_classes([PaymentWebhookThrottle])
def confirm_payment(request: Request) -> Response:
    """
    🔐 Payment provider callback.
    Body is signed with HMAC-SHA256 using PAYMENT_WEBHOOK_SECRET; redelivery is safe.
    """
    secret = getattr(settings, 'PAYMENT_WEBHOOK_SECRET', '')
    if not secret:
        logger.error("🔥 [API] PAYMENT_WEBHOOK_SECRET is not configured, rejecting payment callback")
        return Response({'success': False, 'error': 'Payment webhook not configured'},
                        status=status.HTTP_503_SERVICE_UNAVAILABLE)

    payload_body = request.body
    signature = request.META.get(PAYMENT_SIGNATURE_HEADER, '')
    if not verify_hmac_signature(payload_body, signature, secret):
        logger.warning("🚨 [API] Payment callback with invalid signature")
        return Response({'success': False, 'error': 'Invalid signature'}, status=status.HTTP_401_UNAUTHORIZED)

    try:
        payload = json.loads(payload_body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return Response({'success': False, 'error': 'Invalid JSON'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = PaymentConfirmationInputSerializer(data=payload)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    result = OrderStatusService.confirm_payment(
        serializer.validated_data['order_id'], serializer.validated_data['payment_reference']
    )
    if result.is_err():
        return error_response(result.error)

    confirmation = result.unwrap()
    logger.info(
        f"💳 [API] Payment confirmed for {confirmation.order.order_number} "
        f"({confirmation.ledger_entries_created} ledger entries)"
    )
    return Response({
        'success': True,
        'order_number': confirmation.order.order_number,
        'status': confirmation.order.status,
        'ledger_entries_created': confirmation.ledger_entries_created,
    })


# ===============================================================================
# LOYALTY & GIFT CARDS
# ===============================================================================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def loyalty_account(request: Request) -> Response:
    summary = LoyaltyService.get_account_summary(request.user.pk)
    return Response({'success': True, 'account': LoyaltyAccountSerializer(summary).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def purchase_gift_card(request: Request) -> Response:
    serializer = GiftCardPurchaseInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input_response(serializer.errors)

    result = GiftCardService.issue_gift_card(GiftCardIssueData(
        purchaser=request.user,
        amount=serializer.validated_data['amount'],
        recipient_email=serializer.validated_data['recipient_email'],
        message=serializer.validated_data['message'],
    ))
    if result.is_err():
        return error_response(result.error)
    return Response({'success': True, 'gift_card': GiftCardSerializer(result.unwrap()).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gift_card_balance(request: Request, code: str) -> Response:
    result = GiftCardService.check_balance(code, request.user)
    if result.is_err():
        return error_response(result.error)
    return Response({'success': True, 'gift_card': GiftCardSerializer(result.unwrap()).data})
