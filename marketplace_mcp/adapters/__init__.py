"""MCP Adapter Modules

This package contains modularized MCP adapters organized by functionality:
- utils: Application wiring and response helpers
- auth: Signup, login, OTP and password flows
- products: Catalogue browsing, add-to-cart and buy-now from a product
- cart: Cart operations
- checkout: Delivery method, totals, place order and payment follow-up
- navigation: Page changes guarded during payment processing
- orders: Order history, tracking and cancellation
- wishlist: Optimistic wishlist operations
- profile: Cards, bank accounts, addresses, CMS pages and uploads
"""
