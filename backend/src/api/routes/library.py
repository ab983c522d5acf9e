"""Collections and concepts routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.library import Collection, CollectionCreate, Concept
from ...services.item_store import ItemStore, get_item_store
from ..middleware import AuthContext, get_auth_context

router = APIRouter()


@router.get("/api/collections", response_model=list[Collection])
async def list_collections(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    return await store.get_all_collections()


@router.get("/api/collections/{collection_id}", response_model=Collection)
async def get_collection(
    collection_id: str,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    collection = await store.get_collection(collection_id)
    if collection is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": f"Collection not found: {collection_id}"},
        )
    return collection


@router.post("/api/collections", response_model=Collection, status_code=201)
async def create_collection(
    data: CollectionCreate,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    return await store.create_collection(data)


@router.get("/api/concepts", response_model=list[Concept])
async def list_concepts(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
):
    return await store.get_all_concepts()
