"""HTTP routers, one per storefront area. Mounted by ``trellis.main``."""
from trellis.routes import ai, cart, catalog, interactions, orders, ratings

ALL_ROUTERS = [
    catalog.router,
    cart.router,
    interactions.router,
    ratings.router,
    orders.router,
    ai.router,
]
