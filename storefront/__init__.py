"""
                Restaurant Storefront API

Backend for a restaurant ordering storefront: dish catalog, cart,
checkout with coupons and reward points, addresses and order history.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
