"""
AI augmentation layer: embeddings, similarity ranking, support chat and
generated product content.

Everything here sits beside the catalog and cart on an independent read
path; provider failures are turned into degraded results inside this
package and never fail catalog or cart operations.
"""
from trellis.ai.provider import AIProvider, OpenAIProvider, get_ai_provider

__all__ = ["AIProvider", "OpenAIProvider", "get_ai_provider"]
