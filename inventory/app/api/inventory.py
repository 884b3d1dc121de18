"""Item CRUD endpoints."""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from inventory.app.db.crud.item import ItemStore
from inventory.app.db.dependencies import SessionDep
from inventory.app.middleware.auth import CurrentUser
from inventory.app.services.item_accessor import ItemAccessor
from inventory.app.services.models import (
    ItemCreate,
    ItemListQuery,
    ItemPage,
    ItemUpdate,
)

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


def get_item_accessor(request: Request, session: SessionDep) -> ItemAccessor:
    """Bind the request's session and the app-wide item cache."""
    return ItemAccessor(ItemStore(session), request.app.state.item_cache)


AccessorDep = Annotated[ItemAccessor, Depends(get_item_accessor)]


def get_list_query(
    page: Optional[str] = None,
    page_size: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    min_stock: Optional[str] = None,
    name: Optional[str] = None,
) -> ItemListQuery:
    # Raw strings so malformed values fall back to defaults instead of 422
    return ItemListQuery(
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        min_stock=min_stock,
        name=name,
    )


@router.get("", response_model=ItemPage)
async def list_items(
    accessor: AccessorDep,
    query: Annotated[ItemListQuery, Depends(get_list_query)],
) -> ItemPage:
    """List items with pagination, filtering and sorting."""
    return await accessor.list_items(query)


@router.get("/{item_id}")
async def get_item(item_id: str, accessor: AccessorDep) -> dict[str, Any]:
    """Get one item by ID."""
    item = await accessor.get_item(item_id)
    return {"data": item.model_dump(mode="json")}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(
    data: ItemCreate, accessor: AccessorDep, user: CurrentUser
) -> dict[str, Any]:
    """Create an item."""
    item = await accessor.create_item(data)
    return {"message": "Item created successfully", "data": item.model_dump(mode="json")}


@router.put("/{item_id}")
async def update_item(
    item_id: str,
    body: Annotated[dict[str, Any], Body()],
    accessor: AccessorDep,
    user: CurrentUser,
) -> dict[str, Any]:
    """Replace an item.

    An unknown ID is reported as 404 before the body is validated.
    """
    await accessor.ensure_exists(item_id)
    try:
        data = ItemUpdate.model_validate(body)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e

    item = await accessor.update_item(item_id, data)
    return {"message": "Item updated successfully", "data": item.model_dump(mode="json")}


@router.delete("/{item_id}")
async def delete_item(
    item_id: str, accessor: AccessorDep, user: CurrentUser
) -> dict[str, str]:
    """Delete an item."""
    await accessor.delete_item(item_id)
    return {"message": "Item deleted successfully"}
