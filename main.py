import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Query, Request, Response, UploadFile, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from auth import authenticate, create_access_token, ensure_default_admin, require_admin
from config import Settings, get_settings
from database import AdminStore, CatalogStore, OrderStore, SettingsStore
from errors import NotFound, StoreError, Unauthorized, ValidationFailed
from notifier import ChangeNotifier
from orders import OrderProcessor
from schemas import (
    AdminOut,
    Category,
    CategoryCreate,
    CategoryUpdate,
    Order,
    OrderCreate,
    OrderStatusUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
    SiteSettings,
    SiteSettingsUpdate,
    Token,
)
from seed import seed_catalog
from uploads import ImageStorage

logger = logging.getLogger(__name__)


# Dependencies
def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


def get_orders(request: Request) -> OrderStore:
    return request.app.state.orders


def get_site(request: Request) -> SettingsStore:
    return request.app.state.site


def get_notifier(request: Request) -> ChangeNotifier:
    return request.app.state.notifier


def get_processor(request: Request) -> OrderProcessor:
    return request.app.state.processor


def get_images(request: Request) -> ImageStorage:
    return request.app.state.images


def parse_product_data(model, raw: str):
    try:
        return model.model_validate_json(raw or "{}")
    except ValidationError as e:
        raise ValidationFailed(str(e))


async def store_error_handler(request: Request, exc: StoreError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(title="Forest Pet Shop API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StoreError, store_error_handler)

    app.state.settings = settings
    app.state.catalog = CatalogStore()
    app.state.orders = OrderStore()
    app.state.site = SettingsStore(settings.SITE_DESCRIPTION, settings.SITE_YOUTUBE_URL)
    app.state.admins = AdminStore()
    app.state.notifier = ChangeNotifier()
    app.state.processor = OrderProcessor(app.state.catalog, app.state.orders, app.state.notifier)
    app.state.images = ImageStorage(settings.UPLOAD_DIR, settings.MAX_UPLOAD_BYTES, settings.MAX_UPLOAD_FILES)

    ensure_default_admin(app.state.admins, settings)
    if settings.SEED_CATALOG:
        seed_catalog(app.state.catalog)

    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")
    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:
    @app.get("/")
    def read_root():
        return {"message": "Forest Pet Shop backend is running"}

    @app.get("/test")
    def test_backend(request: Request):
        state = request.app.state
        return {
            "backend": "✅ Running",
            "store": "in-memory",
            "categories": len(state.catalog.categories),
            "products": len(state.catalog.products),
            "orders": len(state.orders.orders),
            "subscribers": len(state.notifier.subscribers),
        }

    # Auth
    @app.post("/api/login", response_model=Token)
    def login(request: Request, form_data: OAuth2PasswordRequestForm = Depends()):
        admin = authenticate(request.app.state.admins, form_data.username, form_data.password)
        access_token = create_access_token({"sub": admin.id}, request.app.state.settings)
        logger.info("Admin %s logged in", admin.email)
        return Token(access_token=access_token)

    @app.get("/api/me", response_model=AdminOut)
    def me(current: AdminOut = Depends(require_admin)):
        return current

    # Public
    @app.get("/api/public/settings", response_model=SiteSettings)
    def public_settings(site: SettingsStore = Depends(get_site)):
        return site.get()

    @app.get("/api/categories", response_model=List[Category])
    def list_categories(catalog: CatalogStore = Depends(get_catalog)):
        return catalog.list_categories()

    @app.get("/api/categories/{category_id}", response_model=Category)
    def get_category(category_id: str, catalog: CatalogStore = Depends(get_catalog)):
        return catalog.get_category(category_id)

    @app.get("/api/products", response_model=List[Product])
    def list_products(
        category_id: Optional[str] = Query(None, alias="categoryId"),
        product_type: Optional[str] = Query(None, alias="type"),
        species: Optional[str] = None,
        catalog: CatalogStore = Depends(get_catalog),
    ):
        return catalog.list_products(category_id=category_id, product_type=product_type, species=species)

    @app.get("/api/products/{product_id}", response_model=Product)
    def get_product(product_id: str, catalog: CatalogStore = Depends(get_catalog)):
        return catalog.get_product(product_id)

    @app.post("/api/orders", response_model=Order, status_code=201)
    async def place_order(payload: OrderCreate, processor: OrderProcessor = Depends(get_processor)):
        return await processor.place(payload)

    @app.websocket("/ws")
    async def live_updates(websocket: WebSocket):
        await websocket.app.state.notifier.serve(websocket)

    # Admin: site settings
    @app.put("/api/admin/site", response_model=SiteSettings, dependencies=[Depends(require_admin)])
    async def update_site(
        payload: SiteSettingsUpdate,
        site: SettingsStore = Depends(get_site),
        notifier: ChangeNotifier = Depends(get_notifier),
    ):
        settings = site.update(payload)
        await notifier.broadcast("settings:updated", settings)
        return settings

    # Admin: categories
    @app.post("/api/admin/categories", response_model=Category, status_code=201, dependencies=[Depends(require_admin)])
    async def create_category(
        payload: CategoryCreate,
        catalog: CatalogStore = Depends(get_catalog),
        notifier: ChangeNotifier = Depends(get_notifier),
    ):
        category = catalog.create_category(payload)
        await notifier.broadcast("category:created", category)
        return category

    @app.put("/api/admin/categories/{category_id}", response_model=Category, dependencies=[Depends(require_admin)])
    async def update_category(
        category_id: str,
        payload: CategoryUpdate,
        catalog: CatalogStore = Depends(get_catalog),
        notifier: ChangeNotifier = Depends(get_notifier),
    ):
        category = catalog.update_category(category_id, payload)
        await notifier.broadcast("category:updated", category)
        return category

    @app.delete("/api/admin/categories/{category_id}", status_code=204, dependencies=[Depends(require_admin)])
    async def delete_category(
        category_id: str,
        catalog: CatalogStore = Depends(get_catalog),
        notifier: ChangeNotifier = Depends(get_notifier),
    ):
        if not catalog.delete_category(category_id):
            raise NotFound("Category not found")
        await notifier.broadcast("category:deleted", {"id": category_id})
        return Response(status_code=204)

    # Admin: products
    @app.post("/api/admin/products", response_model=Product, status_code=201, dependencies=[Depends(require_admin)])
    async def create_product(
        product_data: str = Form("{}", alias="productData"),
        images: List[UploadFile] = File(default=[]),
        catalog: CatalogStore = Depends(get_catalog),
        storage: ImageStorage = Depends(get_images),
        notifier: ChangeNotifier = Depends(get_notifier),
    ):
        data = parse_product_data(ProductCreate, product_data)
        urls = await storage.save_all(images)
        product = catalog.create_product(data, images=urls)
        await notifier.broadcast("product:created", product)
        return product

    @app.put("/api/admin/products/{product_id}", response_model=Product, dependencies=[Depends(require_admin)])
    async def update_product(
        product_id: str,
        product_data: str = Form("{}", alias="productData"),
        images: List[UploadFile] = File(default=[]),
        catalog: CatalogStore = Depends(get_catalog),
        storage: ImageStorage = Depends(get_images),
        notifier: ChangeNotifier = Depends(get_notifier),
    ):
        patch = parse_product_data(ProductUpdate, product_data)
        # Reject a bad patch before any image reaches the disk.
        catalog.merge_product(product_id, patch)
        urls = await storage.save_all(images)
        if urls:
            patch = patch.model_copy(update={"images": urls})
        product = catalog.update_product(product_id, patch)
        await notifier.broadcast("product:updated", product)
        return product

    @app.delete("/api/admin/products/{product_id}", status_code=204, dependencies=[Depends(require_admin)])
    async def delete_product(
        product_id: str,
        catalog: CatalogStore = Depends(get_catalog),
        notifier: ChangeNotifier = Depends(get_notifier),
    ):
        if not catalog.delete_product(product_id):
            raise NotFound("Product not found")
        await notifier.broadcast("product:deleted", {"id": product_id})
        return Response(status_code=204)

    # Admin: orders
    @app.get("/api/admin/orders", response_model=List[Order], dependencies=[Depends(require_admin)])
    def list_orders(orders: OrderStore = Depends(get_orders)):
        return orders.list()

    @app.get("/api/admin/orders/{order_id}", response_model=Order, dependencies=[Depends(require_admin)])
    def get_order(order_id: str, orders: OrderStore = Depends(get_orders)):
        return orders.get(order_id)

    @app.put("/api/admin/orders/{order_id}/status", response_model=Order, dependencies=[Depends(require_admin)])
    async def update_order_status(
        order_id: str,
        payload: OrderStatusUpdate,
        processor: OrderProcessor = Depends(get_processor),
    ):
        return await processor.set_status(order_id, payload.status)


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.PORT)
