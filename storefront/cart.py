"""In-memory shopping cart. Nothing is persisted."""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

CartKey = Tuple[str, Optional[str], Optional[str]]


class CartItem(BaseModel):
    product_id: str
    name: str = ""
    price: float = Field(0, ge=0, description="Unit price after discount")
    image: Optional[str] = None
    category: Optional[str] = None
    quantity: int = Field(1, ge=1)
    size: Optional[str] = None
    color: Optional[str] = None

    @property
    def key(self) -> CartKey:
        return (self.product_id, self.size, self.color)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


def item_from_product(product: Dict, quantity: int = 1, size: Optional[str] = None, color: Optional[str] = None) -> CartItem:
    """Snapshot an API product into a cart line."""
    images = product.get("images") or []
    return CartItem(
        product_id=product["id"],
        name=product.get("name", ""),
        price=product.get("effective_price", product.get("price", 0)),
        image=images[0] if images else None,
        category=product.get("category"),
        quantity=quantity,
        size=size,
        color=color,
    )


class Cart:
    def __init__(self):
        self._items: List[CartItem] = []

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    def _index(self, key: CartKey) -> int:
        for i, item in enumerate(self._items):
            if item.key == key:
                return i
        return -1

    def add_item(self, product: Dict, quantity: int = 1, size: Optional[str] = None, color: Optional[str] = None) -> CartItem:
        """Add a product; a line with the same (product, size, color) grows instead."""
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        item = item_from_product(product, quantity, size, color)
        i = self._index(item.key)
        if i > -1:
            existing = self._items[i]
            self._items[i] = existing.model_copy(update={"quantity": existing.quantity + quantity})
            return self._items[i]
        self._items.append(item)
        return item

    def remove_item(self, product_id: str, size: Optional[str] = None, color: Optional[str] = None) -> None:
        self._items = [item for item in self._items if item.key != (product_id, size, color)]

    def update_quantity(self, product_id: str, quantity: int, size: Optional[str] = None, color: Optional[str] = None) -> None:
        # zero or negative quantity removes the line
        if quantity <= 0:
            self.remove_item(product_id, size, color)
            return
        i = self._index((product_id, size, color))
        if i > -1:
            self._items[i] = self._items[i].model_copy(update={"quantity": quantity})

    def clear(self) -> None:
        self._items = []

    def total_price(self) -> float:
        return round(sum(item.line_total for item in self._items), 2)

    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    def __len__(self) -> int:
        return len(self._items)
