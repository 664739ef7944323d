"""
Trellis storefront backend.

Product catalog, identity-keyed cart ledger, recently-viewed / comparison /
favorites sets, product ratings, checkout, and an AI layer for
recommendations, semantic search, support chat and generated content.
"""

__version__ = "1.0.0"
