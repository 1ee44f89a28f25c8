"""
Persistence adapter for the three POS collections.

Products, ingredients and sales are each stored as one JSON array under a
named key in a key-value string store. Reads never fail on bad data: an
absent or undecodable value is an empty collection, and individual records
that no longer match the schema are dropped. Writes that cannot be stored
raise StorageError.
"""
import json
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from pantry_pos.core.exceptions import StorageError
from pantry_pos.models.kv_entry import KeyValueEntry
from pantry_pos.schemas.catalog import Ingredient, Product
from pantry_pos.schemas.sales import Sale

logger = logging.getLogger(__name__)

PRODUCTS = "products"
INGREDIENTS = "ingredients"
SALES = "sales"

RecordT = TypeVar("RecordT", bound=BaseModel)


class KeyValueStore(ABC):
    """A string-to-string store, in the spirit of browser localStorage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""

    @abstractmethod
    def set_items(self, items: Dict[str, str]) -> None:
        """Store every pair, or none of them."""

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_items(self, items: Dict[str, str]) -> None:
        self._data.update(items)


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the ``kv_entries`` table; each batch is one transaction."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read {key!r} from storage", details={"key": key}) from e

    def set_items(self, items: Dict[str, str]) -> None:
        with self.session_factory() as db:
            try:
                for key, value in items.items():
                    entry = db.get(KeyValueEntry, key)
                    if entry:
                        entry.value = value
                    else:
                        db.add(KeyValueEntry(key=key, value=value))
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Storage write failed for keys {sorted(items)}: {e}")
                raise StorageError(
                    "Could not save changes to storage",
                    details={"keys": sorted(items)},
                ) from e


class PersistenceAdapter:
    """
    Reads and writes the products, ingredients and sales collections.

    Inside ``atomic()`` writes are buffered and handed to the store as a
    single batch when the block exits cleanly; if the block raises, nothing
    is written.
    """

    def __init__(self, store: KeyValueStore, key_prefix: str = "tp_"):
        self.store = store
        self.key_prefix = key_prefix
        self._pending: Optional[Dict[str, str]] = None

    def key_for(self, collection: str) -> str:
        return f"{self.key_prefix}{collection}"

    # ---- reads ----

    def load_products(self) -> List[Product]:
        return self._load(PRODUCTS, Product)

    def load_ingredients(self) -> List[Ingredient]:
        return self._load(INGREDIENTS, Ingredient)

    def load_sales(self) -> List[Sale]:
        return self._load(SALES, Sale)

    def _load(self, collection: str, model: Type[RecordT]) -> List[RecordT]:
        key = self.key_for(collection)
        raw = self.store.get_item(key)
        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Stored value for {key!r} is not valid JSON; using an empty collection")
            return []

        if not isinstance(data, list):
            logger.warning(f"Stored value for {key!r} is not a list; using an empty collection")
            return []

        records = []
        for index, entry in enumerate(data):
            try:
                records.append(model.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Dropping malformed {collection} entry #{index} from {key!r}: {e.error_count()} error(s)")
        return records

    # ---- writes ----

    def save_products(self, products: Sequence[Product]) -> None:
        self._save(PRODUCTS, products)

    def save_ingredients(self, ingredients: Sequence[Ingredient]) -> None:
        self._save(INGREDIENTS, ingredients)

    def save_sales(self, sales: Sequence[Sale]) -> None:
        self._save(SALES, sales)

    def _save(self, collection: str, records: Sequence[BaseModel]) -> None:
        key = self.key_for(collection)
        try:
            payload = json.dumps([r.model_dump(mode="json", by_alias=True) for r in records])
        except (TypeError, ValueError) as e:
            raise StorageError(f"Could not serialize {collection}", details={"key": key}) from e

        if self._pending is not None:
            self._pending[key] = payload
        else:
            self.store.set_item(key, payload)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Buffer writes made inside the block and flush them together."""
        if self._pending is not None:
            # Nested block joins the outer batch
            yield
            return

        self._pending = {}
        try:
            yield
            pending = self._pending
        finally:
            self._pending = None

        if pending:
            self.store.set_items(pending)
