import asyncio
import logging
from typing import Dict, List

from database import CatalogStore, OrderStore
from errors import InsufficientStock, NotFound
from notifier import ChangeNotifier
from schemas import Order, OrderCreate, OrderItem, OrderStatus, Product

logger = logging.getLogger(__name__)


class OrderProcessor:
    """
    Validates a checkout against current stock, records the order and takes
    the ordered units out of the catalog.

    Checking, recording and decrementing happen under one lock, so two
    orders for the same product can never both pass the stock check.
    """

    def __init__(self, catalog: CatalogStore, orders: OrderStore, notifier: ChangeNotifier):
        self.catalog = catalog
        self.orders = orders
        self.notifier = notifier
        self._lock = asyncio.Lock()

    def _resolve(self, request: OrderCreate) -> Dict[str, Product]:
        products: Dict[str, Product] = {}
        for item in request.products:
            if item.product_id in products:
                continue
            try:
                products[item.product_id] = self.catalog.get_product(item.product_id)
            except NotFound:
                raise NotFound("One or more products not found")
        return products

    async def place(self, request: OrderCreate) -> Order:
        async with self._lock:
            products = self._resolve(request)

            # Repeated lines for one product are checked against their combined quantity.
            wanted: Dict[str, int] = {}
            for item in request.products:
                wanted[item.product_id] = wanted.get(item.product_id, 0) + item.quantity
            for product_id, quantity in wanted.items():
                product = products[product_id]
                if product.stock < quantity:
                    raise InsufficientStock(product.name)

            items: List[OrderItem] = [
                OrderItem(
                    product_id=item.product_id,
                    name=products[item.product_id].name,
                    price_in_inr=products[item.product_id].price_in_inr,
                    quantity=item.quantity,
                )
                for item in request.products
            ]
            order = self.orders.create(items, request.customer)
            updated = [self.catalog.decrement_stock(pid, qty) for pid, qty in wanted.items()]

        logger.info("Order %s placed: %d line(s), total INR %d", order.id, len(items), order.total_amount_inr)
        await self.notifier.broadcast("order:created", order)
        for product in updated:
            await self.notifier.broadcast("product:updated", product)
        return order

    async def set_status(self, order_id: str, status: OrderStatus) -> Order:
        # Cancelling does not put stock back.
        order = self.orders.set_status(order_id, status)
        await self.notifier.broadcast("order:updated", order)
        return order
