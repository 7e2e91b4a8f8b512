"""Data REST API endpoints.

- POST   /set_data -> store body data under the signed address (optional ttl)
- GET    /get_data -> fetch the address entry (404 when absent or expired)
- DELETE /del_data -> delete the address entry (idempotent)

The address comes from request.state, set by the signature middleware.
The store comes from app.state, set by the composition root.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, field_validator

from valence.shared.errors import NotFoundError

if TYPE_CHECKING:
    from valence.ports.storage_port import KvStorePort

logger = logging.getLogger(__name__)


class SetDataRequest(BaseModel):
    """Request model for storing data."""

    data: Any
    ttl: int | None = Field(default=None, ge=0)

    @field_validator("data")
    @classmethod
    def data_not_null(cls, v: Any) -> Any:
        if v is None:
            msg = "data cannot be null"
            raise ValueError(msg)
        return v


class SetDataResponse(BaseModel):
    status: str
    address: str


class GetDataResponse(BaseModel):
    address: str
    data: Any


class DeleteDataResponse(BaseModel):
    status: str
    address: str


def _store(request: Request) -> KvStorePort:
    store: KvStorePort = request.app.state.store
    return store


def create_data_router() -> APIRouter:
    """Create the data API router."""
    router = APIRouter(tags=["data"])

    @router.post("/set_data", response_model=SetDataResponse)
    async def set_data(request: Request, body: SetDataRequest) -> SetDataResponse:
        """Store data for the signed address."""
        address: str = request.state.address
        store = _store(request)
        if body.ttl is None:
            await store.set(address, body.data)
        else:
            await store.set_with_expiry(address, body.data, body.ttl)

        logger.info("Stored data for address=%s ttl=%s", address, body.ttl)
        return SetDataResponse(status="ok", address=address)

    @router.get("/get_data", response_model=GetDataResponse)
    async def get_data(request: Request) -> GetDataResponse:
        """Fetch data for the signed address."""
        address: str = request.state.address
        data = await _store(request).get(address)
        if data is None:
            raise NotFoundError("Data", address)
        return GetDataResponse(address=address, data=data)

    @router.delete("/del_data", response_model=DeleteDataResponse)
    async def del_data(request: Request) -> DeleteDataResponse:
        """Delete data for the signed address."""
        address: str = request.state.address
        await _store(request).delete(address)
        logger.info("Deleted data for address=%s", address)
        return DeleteDataResponse(status="deleted", address=address)

    return router
