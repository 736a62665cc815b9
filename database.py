"""
In-memory stores for the pet shop.

Every store owns a plain dict keyed by ObjectId hex strings and hands out
deep copies, so callers never hold a reference into the store. Data lives
for the lifetime of the process only.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError

from errors import NotFound, ValidationFailed
from schemas import (
    Admin,
    Category,
    CategoryCreate,
    CategoryUpdate,
    Order,
    OrderItem,
    OrderStatus,
    Customer,
    Product,
    ProductCreate,
    ProductUpdate,
    SiteSettings,
    SiteSettingsUpdate,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


def now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(ObjectId())


def check_id(value: str, label: str) -> str:
    try:
        ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFound(f"{label} not found")
    return value


def slugify(name: str) -> str:
    """Lowercase, whitespace runs to hyphens, then drop anything outside [a-z0-9-]."""
    slug = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def _validated(model, data: dict):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(str(e))


class CatalogStore:
    """Categories and products."""

    def __init__(self):
        self.categories: Dict[str, Category] = {}
        self.products: Dict[str, Product] = {}

    # Categories
    def list_categories(self) -> List[Category]:
        cats = sorted(self.categories.values(), key=lambda c: c.created_at)
        return [c.model_copy(deep=True) for c in cats]

    def get_category(self, category_id: str) -> Category:
        cat = self.categories.get(check_id(category_id, "Category"))
        if cat is None:
            raise NotFound("Category not found")
        return cat.model_copy(deep=True)

    def create_category(self, data: CategoryCreate) -> Category:
        cat = Category(
            id=new_id(),
            name=data.name,
            slug=slugify(data.name),
            description=data.description,
            created_at=now(),
        )
        self.categories[cat.id] = cat
        logger.info("Created category %s (%s)", cat.id, cat.slug)
        return cat.model_copy(deep=True)

    def update_category(self, category_id: str, patch: CategoryUpdate) -> Category:
        current = self.get_category(category_id)
        merged = {**current.model_dump(), **patch.model_dump(exclude_unset=True)}
        cat = _validated(Category, merged)
        cat.slug = slugify(cat.name)
        self.categories[cat.id] = cat
        return cat.model_copy(deep=True)

    def delete_category(self, category_id: str) -> bool:
        # Products keep their category_id; there is no cascade.
        try:
            check_id(category_id, "Category")
        except NotFound:
            return False
        deleted = self.categories.pop(category_id, None) is not None
        if deleted:
            logger.info("Deleted category %s", category_id)
        return deleted

    # Products
    def list_products(
        self,
        category_id: Optional[str] = None,
        product_type: Optional[str] = None,
        species: Optional[str] = None,
    ) -> List[Product]:
        products = list(self.products.values())
        if category_id:
            products = [p for p in products if p.category_id == category_id]
        if product_type:
            products = [p for p in products if p.type == product_type]
        if species:
            products = [p for p in products if p.species == species]
        products.sort(key=lambda p: p.created_at)
        return [p.model_copy(deep=True) for p in products]

    def get_product(self, product_id: str) -> Product:
        product = self.products.get(check_id(product_id, "Product"))
        if product is None:
            raise NotFound("Product not found")
        return product.model_copy(deep=True)

    def create_product(self, data: ProductCreate, images: Optional[List[str]] = None) -> Product:
        product = _validated(Product, {
            **data.model_dump(),
            "id": new_id(),
            "images": list(images or []),
            "created_at": now(),
        })
        self.products[product.id] = product
        logger.info("Created product %s (%s)", product.id, product.name)
        return product.model_copy(deep=True)

    def merge_product(self, product_id: str, patch: ProductUpdate) -> Product:
        """Apply a patch to a copy of the product and validate it without storing."""
        current = self.get_product(product_id)
        merged = {**current.model_dump(), **patch.model_dump(exclude_unset=True)}
        return _validated(Product, merged)

    def update_product(self, product_id: str, patch: ProductUpdate) -> Product:
        product = self.merge_product(product_id, patch)
        self.products[product.id] = product
        return product.model_copy(deep=True)

    def delete_product(self, product_id: str) -> bool:
        try:
            check_id(product_id, "Product")
        except NotFound:
            return False
        deleted = self.products.pop(product_id, None) is not None
        if deleted:
            logger.info("Deleted product %s", product_id)
        return deleted

    def decrement_stock(self, product_id: str, quantity: int) -> Product:
        product = self.products.get(check_id(product_id, "Product"))
        if product is None:
            raise NotFound("Product not found")
        remaining = product.stock - quantity
        if remaining < 0:
            raise ValidationFailed(f"Stock for {product.name} cannot go below zero")
        product.stock = remaining
        return product.model_copy(deep=True)


class OrderStore:
    def __init__(self):
        self.orders: Dict[str, Order] = {}

    def list(self) -> List[Order]:
        # Ties on created_at fall back to insertion order, newest first.
        ranked = sorted(enumerate(self.orders.values()), key=lambda p: (p[1].created_at, p[0]), reverse=True)
        return [o.model_copy(deep=True) for _, o in ranked]

    def get(self, order_id: str) -> Order:
        order = self.orders.get(check_id(order_id, "Order"))
        if order is None:
            raise NotFound("Order not found")
        return order.model_copy(deep=True)

    def create(self, items: List[OrderItem], customer: Customer) -> Order:
        order = Order(
            id=new_id(),
            products=[i.model_copy() for i in items],
            customer=customer.model_copy(),
            total_amount_inr=sum(i.price_in_inr * i.quantity for i in items),
            status="pending",
            created_at=now(),
        )
        self.orders[order.id] = order
        return order.model_copy(deep=True)

    def set_status(self, order_id: str, status: OrderStatus) -> Order:
        order = self.orders.get(check_id(order_id, "Order"))
        if order is None:
            raise NotFound("Order not found")
        if status not in ALLOWED_TRANSITIONS[order.status]:
            raise ValidationFailed(f"Cannot change order status from {order.status} to {status}")
        order.status = status
        logger.info("Order %s marked %s", order_id, status)
        return order.model_copy(deep=True)


class SettingsStore:
    """Holds the single site-settings record."""

    def __init__(self, description: str, youtube_url: str):
        self._current = SiteSettings(description=description, youtube_url=youtube_url, updated_at=now())

    def get(self) -> SiteSettings:
        return self._current.model_copy()

    def update(self, patch: SiteSettingsUpdate) -> SiteSettings:
        changes = patch.model_dump(exclude_unset=True)
        if changes.get("youtube_url") is not None:
            changes["youtube_url"] = str(changes["youtube_url"])
        self._current = _validated(SiteSettings, {**self._current.model_dump(), **changes, "updated_at": now()})
        return self._current.model_copy()


class AdminStore:
    def __init__(self):
        self.admins: Dict[str, Admin] = {}

    def get(self, admin_id: str) -> Optional[Admin]:
        admin = self.admins.get(admin_id)
        return admin.model_copy() if admin else None

    def get_by_email(self, email: str) -> Optional[Admin]:
        for admin in self.admins.values():
            if admin.email.lower() == email.lower():
                return admin.model_copy()
        return None

    def create(self, name: str, email: str, password_hash: str) -> Admin:
        admin = Admin(id=new_id(), name=name, email=email, password_hash=password_hash, created_at=now())
        self.admins[admin.id] = admin
        return admin.model_copy()
