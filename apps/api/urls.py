# ===============================================================================
# MARKETPLACE API URLS 🚀
# ===============================================================================
#
# URL Structure:
#   /api/orders/      → Checkout and order lookup
#   /api/payments/    → Payment provider callbacks (HMAC signed)
#   /api/loyalty/     → Loyalty account summary
#   /api/gift-cards/  → Gift card purchase and balance
#

from django.urls import path

from . import views

app_name = 'api'

urlpatterns = [
    path('orders/checkout/', views.checkout, name='checkout'),
    path('orders/<uuid:order_id>/', views.order_detail, name='order_detail'),
    path('payments/confirm/', views.confirm_payment, name='confirm_payment'),
    path('loyalty/account/', views.loyalty_account, name='loyalty_account'),
    path('gift-cards/', views.purchase_gift_card, name='purchase_gift_card'),
    path('gift-cards/<str:code>/', views.gift_card_balance, name='gift_card_balance'),
]
