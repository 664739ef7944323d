"""
Configuration management for the Trellis storefront.

Loads settings from the YAML config file and the environment and provides
typed access. Values are read once at startup and treated as read-only.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of the trellis package)."""
    return Path(__file__).resolve().parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

# Hard ceiling on a cart line item quantity; the cart_items CHECK constraint uses it
MAX_LINE_QUANTITY = 10_000

DEFAULT_KNOWLEDGE_BASE = """
**Trellis E-commerce Store**

Shipping & Returns:
- Free shipping on orders over $50
- Standard shipping takes 3-5 business days
- 30-day return policy on most items
- Return items in original packaging

Payment:
- We accept all major credit cards
- Secure checkout with SSL encryption
- Order confirmation sent via email

Customer Support:
- Email: support@trellis.com
- Live chat available Mon-Fri 9am-6pm EST
- FAQ section available on our website
"""

DEFAULT_SUPPORT_FALLBACK = (
    "I'm sorry, our support assistant is currently unable to respond. "
    "Please email support@trellis.com and our team will get back to you."
)


@dataclass
class StoreConfig:
    """Configuration for the storefront."""

    # Pricing
    tax_rate: float = 0.08
    shipping_cost: float = 0.0
    max_line_quantity: int = MAX_LINE_QUANTITY

    # Interaction sets
    recently_viewed_limit: int = 10
    comparison_max_products: int = 3

    # AI layer
    compare_min_products: int = 2
    recommendation_limit: int = 5
    search_similarity_threshold: float = 0.3
    chat_context_messages: int = 10
    provider_timeout_seconds: float = 10.0
    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    chat_max_tokens: int = 500
    compare_max_tokens: int = 800
    seo_title_max_chars: int = 60
    seo_description_max_chars: int = 155
    knowledge_base: str = DEFAULT_KNOWLEDGE_BASE
    support_fallback_message: str = DEFAULT_SUPPORT_FALLBACK

    # Server
    database_url: str = "sqlite:///./trellis.db"
    secret_key: str = "dev-secret-key-CHANGE-IN-PRODUCTION"
    jwt_algorithm: str = "HS256"
    admin_api_key: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    latency_log_path: Optional[str] = None

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "StoreConfig":
        """Load configuration from YAML file, then apply environment overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        pricing = data.get('pricing', {})
        interactions = data.get('interactions', {})
        ai = data.get('ai', {})
        server = data.get('server', {})

        config = cls(
            tax_rate=pricing.get('tax_rate', 0.08),
            shipping_cost=pricing.get('shipping_cost', 0.0),
            max_line_quantity=min(pricing.get('max_line_quantity', MAX_LINE_QUANTITY), MAX_LINE_QUANTITY),
            recently_viewed_limit=interactions.get('recently_viewed_limit', 10),
            comparison_max_products=interactions.get('comparison_max_products', 3),
            compare_min_products=ai.get('compare_min_products', 2),
            recommendation_limit=ai.get('recommendation_limit', 5),
            search_similarity_threshold=ai.get('search_similarity_threshold', 0.3),
            chat_context_messages=ai.get('chat_context_messages', 10),
            provider_timeout_seconds=ai.get('provider_timeout_seconds', 10.0),
            chat_max_tokens=ai.get('chat_max_tokens', 500),
            compare_max_tokens=ai.get('compare_max_tokens', 800),
            seo_title_max_chars=ai.get('seo_title_max_chars', 60),
            seo_description_max_chars=ai.get('seo_description_max_chars', 155),
            knowledge_base=ai.get('knowledge_base', DEFAULT_KNOWLEDGE_BASE),
            support_fallback_message=ai.get('support_fallback_message', DEFAULT_SUPPORT_FALLBACK),
            cors_origins=server.get('cors_origins', ["*"]),
            latency_log_path=server.get('latency_log_path'),
        )
        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override deployment values and secrets from the environment."""
        self.database_url = os.getenv("DATABASE_URL") or self.database_url
        self.secret_key = os.getenv("SECRET_KEY") or self.secret_key
        self.admin_api_key = os.getenv("ADMIN_API_KEY") or self.admin_api_key
        self.chat_model = os.getenv("OPENAI_MODEL") or self.chat_model
        self.embedding_model = os.getenv("OPENAI_EMBEDDING_MODEL") or self.embedding_model
        self.latency_log_path = os.getenv("LATENCY_LOG_PATH") or self.latency_log_path


# Global config instance
_config: Optional[StoreConfig] = None


def get_config() -> StoreConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = StoreConfig.from_yaml()
    return _config


def set_config(config: StoreConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
