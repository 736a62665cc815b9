"""
Schemas for the Forest Pet Shop

Each Pydantic model mirrors one record kept by the in-memory stores
(Category, Product, Order, SiteSettings, Admin) or one request body.
Fields are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

ProductType = Literal["pet", "food", "accessory"]
OrderStatus = Literal["pending", "completed", "cancelled"]


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Categories
class CategoryCreate(Schema):
    name: str = Field(..., min_length=1, description="Display name")
    description: str = Field("", description="Short blurb shown on the storefront")


class CategoryUpdate(Schema):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class Category(Schema):
    id: str
    name: str = Field(..., min_length=1)
    slug: str = Field(..., description="URL-safe identifier derived from name")
    description: str = ""
    created_at: datetime


# Products
class ProductCreate(Schema):
    name: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1, description="Owning category id")
    type: ProductType
    species: Optional[str] = None
    description: str = Field(..., min_length=1)
    price_in_inr: int = Field(..., gt=0, alias="priceInINR", description="Price in whole rupees")
    stock: int = Field(..., ge=0, description="Units in stock")
    available: bool = True


class ProductUpdate(Schema):
    name: Optional[str] = Field(None, min_length=1)
    category_id: Optional[str] = Field(None, min_length=1)
    type: Optional[ProductType] = None
    species: Optional[str] = None
    description: Optional[str] = Field(None, min_length=1)
    price_in_inr: Optional[int] = Field(None, gt=0, alias="priceInINR")
    stock: Optional[int] = Field(None, ge=0)
    available: Optional[bool] = None
    images: Optional[List[str]] = None


class Product(Schema):
    id: str
    name: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    type: ProductType
    species: Optional[str] = None
    images: List[str] = Field(default_factory=list, description="Image URIs")
    description: str = Field(..., min_length=1)
    price_in_inr: int = Field(..., gt=0, alias="priceInINR")
    stock: int = Field(..., ge=0)
    available: bool = True
    created_at: datetime


# Orders
class Customer(Schema):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=10, description="Contact number")
    alt_phone: Optional[str] = None
    address: str = Field(..., min_length=1)


class OrderItemRequest(Schema):
    product_id: str
    quantity: int = Field(..., gt=0)


class OrderCreate(Schema):
    products: List[OrderItemRequest] = Field(..., min_length=1)
    customer: Customer


class OrderItem(Schema):
    """Line item snapshot: name and price as they were when the order was placed."""
    product_id: str
    name: str
    price_in_inr: int = Field(..., alias="priceInINR")
    quantity: int


class Order(Schema):
    id: str
    products: List[OrderItem]
    customer: Customer
    total_amount_inr: int = Field(..., alias="totalAmountINR")
    status: OrderStatus = "pending"
    created_at: datetime


class OrderStatusUpdate(Schema):
    status: OrderStatus


# Site settings
class SiteSettings(Schema):
    id: str = "default"
    description: str
    youtube_url: str = ""
    updated_at: datetime


class SiteSettingsUpdate(Schema):
    description: Optional[str] = Field(None, min_length=1)
    youtube_url: Optional[HttpUrl] = None


# Admins
class Admin(Schema):
    id: str
    name: str
    email: str
    password_hash: str
    role: Literal["admin"] = "admin"
    created_at: datetime


class AdminOut(Schema):
    id: str
    name: str
    email: str
    role: str = "admin"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
