"""Services for business logic with proper separation of concerns

- delivery_methods / pricing: pure checkout computations
- checkout_service: place-order orchestration
- payment_guard: navigation blocking while a payment is in flight
- auth_service / otp_service: authentication and email verification
- product_service / order_service: catalogue reads and buyer order history
- cart_service, wishlist_service, card_service, bank_account_service,
  address_service, cms_service, file_service: account data
"""
