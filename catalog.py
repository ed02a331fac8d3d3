"""Product catalog stored in the "product" collection."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from pymongo import DESCENDING
from pymongo.database import Database

from database import create_document, serialize_doc, to_object_id
from errors import NotFound, ValidationError
from schemas import Product as ProductSchema, ProductUpdate

logger = logging.getLogger(__name__)

COLLECTION = "product"


def effective_price(price: float, discount: float) -> float:
    """List price after the percentage discount, never below zero."""
    return max(round(price * (1 - (discount or 0) / 100), 2), 0.0)


def to_response(doc: Dict[str, Any]) -> Dict[str, Any]:
    product = serialize_doc(doc)
    product["effective_price"] = effective_price(product.get("price", 0), product.get("discount", 0))
    return product


def _find(db: Database, product_id: str) -> Dict[str, Any]:
    obj_id = to_object_id(product_id)
    product = db[COLLECTION].find_one({"_id": obj_id}) if obj_id else None
    if not product:
        raise NotFound("Product not found")
    return product


def list_products(db: Database) -> List[Dict[str, Any]]:
    cursor = db[COLLECTION].find().sort([("created_at", DESCENDING), ("_id", DESCENDING)])
    return [to_response(doc) for doc in cursor]


def get_product(db: Database, product_id: str) -> Dict[str, Any]:
    return to_response(_find(db, product_id))


def create_product(db: Database, data: ProductSchema) -> Dict[str, Any]:
    product_id = create_document(db, COLLECTION, data)
    logger.info("Created product %s", product_id)
    return get_product(db, product_id)


def update_product(db: Database, product_id: str, data: ProductUpdate) -> Dict[str, Any]:
    product = _find(db, product_id)
    update_dict = data.changes()
    if not update_dict:
        raise ValidationError("No fields to update")
    update_dict["updated_at"] = datetime.now(timezone.utc)
    # last write wins per field; there is no version check between admins
    db[COLLECTION].update_one({"_id": product["_id"]}, {"$set": update_dict})
    logger.info("Updated product %s fields=%s", product_id, sorted(update_dict))
    return get_product(db, product_id)


def delete_product(db: Database, product_id: str) -> None:
    product = _find(db, product_id)
    db[COLLECTION].delete_one({"_id": product["_id"]})
    logger.info("Deleted product %s", product_id)
