"""MongoDB repository for restaurant settings, catalog and stored orders."""

from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Optional

from pymongo import MongoClient

from ..utils.config import Config
from ..utils.logging import get_logger

logger = get_logger(__name__)


class RestaurantRepository:
    def __init__(
        self,
        url: Optional[str] = None,
        db_name: Optional[str] = None,
        connection_url_env_key: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> None:
        config = config or Config(".env")

        if connection_url_env_key:
            self._url = os.getenv(connection_url_env_key) or config.get("mongo_url")
        else:
            self._url = url or config.get("mongo_url")

        self._db = db_name or config.get("mongo_db")
        self._collections = {
            "restaurants": config.get("restaurants_collection"),
            "menu_items": config.get("menu_items_collection"),
            "menu_rules": config.get("menu_rules_collection"),
            "options": config.get("options_collection"),
            "orders": config.get("orders_collection"),
        }
        if not self._url:
            raise ValueError("DB_CONNECTION_URL is required")
        self._client: Optional[MongoClient] = None

    def __enter__(self) -> "RestaurantRepository":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        if self._client is None:
            self._client = MongoClient(self._url, serverSelectionTimeoutMS=5000)

    def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _collection(self, name: str):
        if self._client is None:
            self.connect()
        return self._client[self._db][self._collections[name]]

    def get_restaurant(self, restaurant_id: str) -> Optional[Dict[str, Any]]:
        return self._collection("restaurants").find_one({"_id": restaurant_id})

    def get_menu_items(self, restaurant_id: str, menu_item_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ids = sorted(set(menu_item_ids))
        cursor = self._collection("menu_items").find({"_id": {"$in": ids}, "restaurantId": restaurant_id})
        return list(cursor)

    def get_menu_rules(self, menu_item_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ids = sorted(set(menu_item_ids))
        return list(self._collection("menu_rules").find({"menuItemId": {"$in": ids}}))

    def get_options(self, restaurant_id: str) -> List[Dict[str, Any]]:
        cursor = self._collection("options").find({"restaurantId": restaurant_id, "isAvailable": {"$ne": False}})
        return list(cursor)

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        logger.debug(f"Fetching order {order_id}")
        return self._collection("orders").find_one({"_id": order_id})
