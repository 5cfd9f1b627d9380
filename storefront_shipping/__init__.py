"""
Storefront shipping service.

Matches configured shipping rules to a destination, splits the cart into
packages and ranks the priced options for checkout.
"""
__version__ = "1.0.0"
