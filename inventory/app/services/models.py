"""Item data models shared by the API, the cache and the accessor."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
SORT_FIELDS = ("name", "stock", "price")

# Scale and upper bound of the items.price column
PRICE_QUANTUM = Decimal("0.01")
MAX_PRICE = Decimal("9999999999.99")


class ItemFields(BaseModel):
    """Writable item fields, validated on create and update."""

    name: str = Field(..., min_length=1, max_length=100)
    stock: int = Field(..., ge=0)
    price: Decimal = Field(..., gt=0)

    @field_validator("price")
    @classmethod
    def _round_price(cls, v: Decimal) -> Decimal:
        """Round to cents, as stored."""
        if v > MAX_PRICE:
            raise ValueError(f"price must not exceed {MAX_PRICE}")
        price = v.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
        if price <= 0:
            raise ValueError("price must be at least 0.01")
        return price


class ItemCreate(ItemFields):
    """Request body for creating an item."""


class ItemUpdate(ItemFields):
    """Request body for updating an item.

    An update replaces every writable field of the stored record.
    """


class ItemSnapshot(BaseModel):
    """A whole item as read from the store.

    This is both the API response shape and the cached value; the cache
    stores ``model_dump_json()`` bytes verbatim.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    stock: int
    price: Decimal

    @field_serializer("price", when_used="json")
    def _serialize_price(self, price: Decimal) -> float:
        return float(price)

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "ItemSnapshot":
        return cls.model_validate_json(data)


class ItemListQuery(BaseModel):
    """Listing parameters.

    Out-of-range or unknown values fall back to defaults instead of being
    rejected.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: Literal["name", "stock", "price"] = "name"
    sort_order: Literal["asc", "desc"] = "asc"
    min_stock: Optional[int] = None
    name: Optional[str] = None

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, v: Any) -> int:
        page = _as_int(v, 1)
        return page if page >= 1 else 1

    @field_validator("page_size", mode="before")
    @classmethod
    def _clamp_page_size(cls, v: Any) -> int:
        size = _as_int(v, DEFAULT_PAGE_SIZE)
        return size if 1 <= size <= MAX_PAGE_SIZE else DEFAULT_PAGE_SIZE

    @field_validator("sort_by", mode="before")
    @classmethod
    def _default_sort_by(cls, v: Any) -> str:
        return v if v in SORT_FIELDS else "name"

    @field_validator("sort_order", mode="before")
    @classmethod
    def _default_sort_order(cls, v: Any) -> str:
        return v if v in ("asc", "desc") else "asc"

    @field_validator("min_stock", mode="before")
    @classmethod
    def _parse_min_stock(cls, v: Any) -> Optional[int]:
        return _as_int(v, None)

    @field_validator("name", mode="before")
    @classmethod
    def _blank_name(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ItemPage(BaseModel):
    """One page of items plus pagination metadata."""

    data: list[ItemSnapshot]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, items: list[ItemSnapshot], total: int, query: ItemListQuery) -> "ItemPage":
        total_pages = (total + query.page_size - 1) // query.page_size
        return cls(
            data=items,
            total=total,
            page=query.page,
            page_size=query.page_size,
            total_pages=total_pages,
            has_next=query.page < total_pages,
            has_prev=query.page > 1,
        )


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
