import re
import threading
import uuid
from typing import Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import NotFoundError, ValidationError

PRODUCT_NOT_FOUND = "Product not found"
BAD_PAGINATION = "Page and limit must be positive integers"
SEARCH_QUERY_REQUIRED = "Search query (q) is required"


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str
    price: Union[int, float]
    category: str
    in_stock: bool = Field(alias="inStock")


# Catalogue initial, recréé à chaque démarrage
SEED_PRODUCTS: List[dict] = [
    {
        "id": "1",
        "name": "Laptop",
        "description": "High-performance laptop with 16GB RAM",
        "price": 1200,
        "category": "electronics",
        "inStock": True,
    },
    {
        "id": "2",
        "name": "Smartphone",
        "description": "Latest model with 128GB storage",
        "price": 800,
        "category": "electronics",
        "inStock": True,
    },
    {
        "id": "3",
        "name": "Coffee Maker",
        "description": "Programmable coffee maker with timer",
        "price": 50,
        "category": "kitchen",
        "inStock": False,
    },
]


DIGITS = re.compile(r"[0-9]+")


def _positive_int(value) -> int:
    if isinstance(value, str):
        # Plain ASCII digits only: no sign, whitespace or underscores
        if not DIGITS.fullmatch(value):
            raise ValidationError(BAD_PAGINATION)
        value = int(value)
    elif isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(BAD_PAGINATION)
    if value < 1:
        raise ValidationError(BAD_PAGINATION)
    return value


class ProductCollection:
    """
    Ordered, in-memory product store.

    Insertion order is kept across creates, a replace keeps the record's
    position and a delete only removes the matched record. All operations
    share one lock so that concurrent requests never interleave a mutation
    with a read.
    """

    def __init__(self, products: Optional[List[Product]] = None,
                 id_factory: Callable[[], str] = lambda: str(uuid.uuid4())):
        self._products: List[Product] = list(products or [])
        self._id_factory = id_factory
        self._lock = threading.RLock()

    @classmethod
    def seeded(cls, **kwargs) -> "ProductCollection":
        return cls([Product(**p) for p in SEED_PRODUCTS], **kwargs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)

    def all(self) -> List[Product]:
        with self._lock:
            return list(self._products)

    def _index_of(self, product_id: str) -> int:
        for index, product in enumerate(self._products):
            if product.id == product_id:
                return index
        raise NotFoundError(PRODUCT_NOT_FOUND)

    def list_products(self, category: Optional[str] = None, page=1, limit=10) -> Tuple[List[Product], int, int, int]:
        """
        Filter by category (case-insensitive) and paginate.

        Returns ``(products, total, page, limit)`` where ``total`` is the size
        of the filtered set, not of the returned page.
        """
        page_num = _positive_int(page)
        limit_num = _positive_int(limit)
        with self._lock:
            if category:
                wanted = category.lower()
                filtered = [p for p in self._products if p.category.lower() == wanted]
            else:
                filtered = list(self._products)

        start = (page_num - 1) * limit_num
        end = page_num * limit_num
        return filtered[start:end], len(filtered), page_num, limit_num

    def get(self, product_id: str) -> Product:
        with self._lock:
            return self._products[self._index_of(product_id)]

    def create(self, fields: Dict) -> Product:
        with self._lock:
            product = Product(id=self._id_factory(), **fields)
            self._products.append(product)
            return product

    def replace(self, product_id: str, fields: Dict) -> Product:
        with self._lock:
            index = self._index_of(product_id)
            product = Product(id=product_id, **fields)
            self._products[index] = product
            return product

    def delete(self, product_id: str) -> Product:
        with self._lock:
            return self._products.pop(self._index_of(product_id))

    def search(self, query: Optional[str]) -> List[Product]:
        if not query:
            raise ValidationError(SEARCH_QUERY_REQUIRED)
        term = query.lower()
        with self._lock:
            return [p for p in self._products if term in p.name.lower()]

    def stats(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        with self._lock:
            for product in self._products:
                category = product.category.lower()
                counts[category] = counts.get(category, 0) + 1
        return counts
