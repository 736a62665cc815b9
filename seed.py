import logging
from typing import Dict, List

from database import CatalogStore
from schemas import CategoryCreate, ProductCreate

logger = logging.getLogger(__name__)

SEED_CATEGORIES: List[Dict] = [
    {"name": "Dogs", "description": "Products and companions for dog lovers"},
    {"name": "Cats", "description": "Everything for your feline friends"},
    {"name": "Fish", "description": "Aquatic pets and aquarium supplies"},
    {"name": "Birds", "description": "Feathered friends and bird care products"},
]

# Keyed by category name; resolved to ids once the categories exist.
SEED_PRODUCTS: Dict[str, List[Dict]] = {
    "Dogs": [
        {"name": "Golden Retriever Puppy", "type": "pet", "species": "Dog", "priceInINR": 25000, "stock": 2,
         "description": "Friendly and energetic golden retriever puppy, perfect for families with children. Well-socialized and health-checked."},
        {"name": "Premium Dog Food - Adult", "type": "food", "species": "Dog", "priceInINR": 1200, "stock": 15,
         "description": "High-quality dry dog food with real chicken, perfect for adult dogs. Contains essential nutrients for healthy growth."},
        {"name": "Dog Leash and Collar Set", "type": "accessory", "species": "Dog", "priceInINR": 800, "stock": 8,
         "description": "Durable leather leash with matching collar, adjustable and comfortable for daily walks."},
    ],
    "Cats": [
        {"name": "Persian Kitten", "type": "pet", "species": "Cat", "priceInINR": 18000, "stock": 3,
         "description": "Beautiful Persian kitten with long, fluffy coat. Very gentle and perfect for indoor living."},
        {"name": "Premium Cat Food - Kitten", "type": "food", "species": "Cat", "priceInINR": 900, "stock": 20,
         "description": "Specially formulated dry food for kittens with DHA for brain development and calcium for strong bones."},
        {"name": "Cat Scratching Post", "type": "accessory", "species": "Cat", "priceInINR": 2500, "stock": 5,
         "description": "Multi-level scratching post with sisal rope and cozy hideout, perfect for active cats."},
    ],
    "Fish": [
        {"name": "Tropical Angelfish Pair", "type": "pet", "species": "Fish", "priceInINR": 350, "stock": 12,
         "description": "Beautiful pair of angelfish, perfect for community aquariums. Hardy and easy to care for."},
        {"name": "Aquarium Fish Food Flakes", "type": "food", "species": "Fish", "priceInINR": 250, "stock": 30,
         "description": "High-quality fish flakes with vitamins and minerals for tropical fish. Enhances color and promotes growth."},
        {"name": "10 Gallon Aquarium Kit", "type": "accessory", "species": "Fish", "priceInINR": 4500, "stock": 3,
         "description": "Complete aquarium kit with filter, heater, and LED lighting. Perfect starter tank for beginners."},
    ],
    "Birds": [
        {"name": "Cockatiel Pair", "type": "pet", "species": "Bird", "priceInINR": 8000, "stock": 4,
         "description": "Friendly and social cockatiel pair. Hand-fed and very tame, great for families."},
        {"name": "Bird Seed Mix", "type": "food", "species": "Bird", "priceInINR": 400, "stock": 25,
         "description": "Nutritious seed mix for cockatiels and small parrots. Contains sunflower seeds, millet, and safflower."},
        {"name": "Large Bird Cage", "type": "accessory", "species": "Bird", "priceInINR": 6500, "stock": 2,
         "description": "Spacious bird cage with multiple perches and feeding stations. Easy to clean with removable tray."},
    ],
}


def seed_catalog(catalog: CatalogStore) -> bool:
    """Load the sample catalog into an empty store. Returns False if anything was already there."""
    if catalog.categories or catalog.products:
        return False
    for raw in SEED_CATEGORIES:
        category = catalog.create_category(CategoryCreate(**raw))
        for p in SEED_PRODUCTS.get(category.name, []):
            catalog.create_product(ProductCreate(**p, categoryId=category.id))
    logger.info("Seeded %d categories and %d products", len(catalog.categories), len(catalog.products))
    return True
