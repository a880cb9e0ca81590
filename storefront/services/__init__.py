"""
                        Services Module

Business logic behind the storefront API.

Services:
    - pricing: Checkout arithmetic (pure)
    - catalog: Menu filtering and sorting (pure)
    - order_status: Order lifecycle descriptor table (pure)
    - rewards: Reward point ledger
    - auth: Password hashing and account lookup
    - session: Signed-in user and cart for one browsing session
    - checkout: Catalog-priced cart lines and order snapshots
"""
