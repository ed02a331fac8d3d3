"""
Product listing filters.

Each criterion is an independent predicate over an API product dict, so the
order they are applied in never changes the result set. Sorting happens last
and is stable: products that compare equal keep their listing order.
"""

from typing import Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

Product = Dict
Predicate = Callable[[Product], bool]
SortKey = Literal["featured", "newest", "price-low", "price-high"]


class ProductFilters(BaseModel):
    category: str = ""
    price_range: Tuple[float, float] = (0, 200)
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    in_stock: bool = False


def by_category(category: str) -> Optional[Predicate]:
    if not category:
        return None
    return lambda p: p.get("category") == category


def by_price(low: float, high: float) -> Predicate:
    return lambda p: low <= p.get("price", 0) <= high


def by_any_of(field: str, wanted: List[str]) -> Optional[Predicate]:
    if not wanted:
        return None
    wanted_set = set(wanted)
    return lambda p: bool(wanted_set.intersection(p.get(field) or []))


def in_stock() -> Predicate:
    return lambda p: (p.get("stock") or 0) > 0


def predicates(filters: ProductFilters) -> List[Predicate]:
    candidates = [
        by_category(filters.category),
        by_price(*filters.price_range),
        by_any_of("sizes", filters.sizes),
        by_any_of("colors", filters.colors),
        in_stock() if filters.in_stock else None,
    ]
    return [p for p in candidates if p is not None]


def sort_products(products: List[Product], sort_by: SortKey = "featured") -> List[Product]:
    if sort_by == "price-low":
        return sorted(products, key=lambda p: p.get("price", 0))
    if sort_by == "price-high":
        return sorted(products, key=lambda p: p.get("price", 0), reverse=True)
    if sort_by == "newest":
        return sorted(products, key=lambda p: p.get("created_at") or "", reverse=True)
    return list(products)


def apply_filters(products: List[Product], filters: ProductFilters, sort_by: SortKey = "featured") -> List[Product]:
    checks = predicates(filters)
    # all() stops at the first failing predicate
    matching = [p for p in products if all(check(p) for check in checks)]
    return sort_products(matching, sort_by)
