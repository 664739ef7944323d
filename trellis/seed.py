"""
Sample catalog: categories, products and a handful of reviews.

Used by ``scripts/seed_catalog.py`` and by the test fixtures. Seeding is
skipped when the catalog already has categories.
"""
from typing import Dict

from sqlalchemy.orm import Session

from trellis.logger import get_logger
from trellis.models import Category, Product, Rating

logger = get_logger("seed")

SAMPLE_CATEGORIES = [
    {"name": "Featured", "description": "Our featured products"},
    {"name": "New Arrivals", "description": "Latest products"},
    {"name": "Best Sellers", "description": "Most popular items"},
    {"name": "Electronics", "description": "Electronic devices and accessories"},
    {"name": "Home & Garden", "description": "Home and garden essentials"},
    {"name": "Fashion", "description": "Clothing and accessories"},
]

SAMPLE_PRODUCTS = [
    {
        "name": "Premium Wireless Headphones",
        "description": "High-quality wireless headphones with noise cancellation and premium sound quality. "
                       "Perfect for music lovers and professionals.",
        "price": 149.99, "original_price": 199.99, "category": "Electronics",
        "image": "images/wireless-headphones.jpeg", "tags": ["sale", "wireless", "audio"], "featured": True,
    },
    {
        "name": "Smart Home Assistant",
        "description": "Voice-controlled smart home assistant with AI capabilities. "
                       "Control your home devices with simple voice commands.",
        "price": 89.99, "category": "Electronics",
        "image": "images/smart-speaker.jpg", "tags": ["smart", "home", "ai"], "featured": True,
    },
    {
        "name": "Professional Camera Kit",
        "description": "Complete photography kit for professionals and enthusiasts. "
                       "Includes camera body, lenses, and accessories.",
        "price": 899.99, "category": "Electronics",
        "image": "images/camera-kit.jpg", "tags": ["photography", "professional", "kit"],
    },
    {
        "name": "Wireless Phone Charger",
        "description": "Fast wireless charging pad compatible with all Qi-enabled devices. Sleek design with LED indicator.",
        "price": 39.99, "original_price": 49.99, "category": "Electronics",
        "image": "images/wireless-charger.jpg", "tags": ["sale", "wireless", "charger"],
    },
    {
        "name": "Ergonomic Office Chair",
        "description": "Comfortable ergonomic office chair designed for long working hours. "
                       "Adjustable height and lumbar support.",
        "price": 299.99, "category": "Home & Garden",
        "image": "images/office-chair.jpg", "tags": ["new", "office", "ergonomic"],
    },
    {
        "name": "Minimalist Desk Lamp",
        "description": "Sleek and modern desk lamp with adjustable brightness. Perfect for any workspace or bedside table.",
        "price": 79.99, "category": "Home & Garden",
        "image": "images/desk-lamp.jpg", "tags": ["lighting", "minimalist", "desk"],
    },
    {
        "name": "4K Curved Monitor",
        "description": "High-resolution curved monitor with professional display quality. "
                       "Perfect for productivity and creative work.",
        "price": 449.99, "category": "Electronics",
        "image": "images/curved-monitor.jpg", "tags": ["monitor", "display", "productivity"],
    },
    {
        "name": "Fitness Tracker",
        "description": "Advanced fitness tracker with heart rate monitoring, GPS, and waterproof design. "
                       "Track your health goals.",
        "price": 79.99, "original_price": 99.99, "category": "Electronics",
        "image": "images/fitness-tracker.jpg", "tags": ["sale", "fitness", "health"], "featured": True,
    },
    {
        "name": "Luxury Watch",
        "description": "Elegant timepiece with premium materials and precision craftsmanship. "
                       "A perfect accessory for any occasion.",
        "price": 459.99, "category": "Fashion",
        "image": "images/luxury-watch.jpg", "tags": ["luxury", "watch", "premium"],
    },
    {
        "name": "Investment Portfolio Kit",
        "description": "Comprehensive guide and tools for building and managing your investment portfolio. "
                       "Professional strategies for wealth building.",
        "price": 199.99, "category": "Books & Education",
        "image": "images/investment-kit.jpg", "tags": ["investment", "finance", "education"],
    },
]

# (index into SAMPLE_PRODUCTS, user name, stars, review)
SAMPLE_REVIEWS = [
    (0, "Sarah M.", 5, "Absolutely amazing headphones! The noise cancellation is incredible."),
    (0, "Mike T.", 4, "Great sound quality and comfortable."),
    (1, "Jennifer A.", 5, "Transformed our home! Voice recognition is spot-on."),
    (2, "Photography Pro", 5, "Professional-grade equipment at an amazing price!"),
    (4, "Office Worker", 5, "Best chair I've ever owned. Back pain gone."),
]


def seed_catalog(db: Session) -> Dict[str, int]:
    """Insert the sample data into an empty catalog. Returns counts per table."""
    if db.query(Category).first() is not None:
        logger.info("seed: method=seed_catalog result=skipped reason=already_seeded")
        return {"categories": 0, "products": 0, "ratings": 0}

    db.add_all(Category(**c) for c in SAMPLE_CATEGORIES)
    products = [Product(in_stock=True, **p) for p in SAMPLE_PRODUCTS]
    db.add_all(products)
    db.flush()

    db.add_all(
        Rating(product_id=products[index].id, user_name=user_name, rating=stars, review=review)
        for index, user_name, stars, review in SAMPLE_REVIEWS
    )
    db.commit()

    counts = {"categories": len(SAMPLE_CATEGORIES), "products": len(products), "ratings": len(SAMPLE_REVIEWS)}
    logger.info("seed: method=seed_catalog result=success counts=%s", counts)
    return counts
