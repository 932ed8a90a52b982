"""
Route Map Backend: Shared Route Dependencies
=============================================

What:  FastAPI dependencies and body helpers used by several route modules.

    get_http_client  the app-wide httpx.AsyncClient (opened in the lifespan)
    get_store        StoreClient bound to that client and the settings
    read_json_body   request body as a dict ({} for an empty body)
    parse_body       dict → pydantic request model, errors as ValidationError

An unparseable or non-object body is a 400 `{"error": "Invalid JSON body"}`.
"""

import json
import logging
from typing import Any, Dict, Type, TypeVar

import httpx
from fastapi import Depends, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from routemap.exceptions import ValidationError
from routemap.services.store_client import StoreClient

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Shared client from app.state.

    Created on first use when the lifespan did not run (e.g. an app mounted
    without lifespan events). Only the lifespan's client is closed at
    shutdown; one created here lives until the process exits.
    """
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        logger.debug("No http client on app.state, creating one")
        client = httpx.AsyncClient()
        request.app.state.http_client = client
    return client


def get_store(client: httpx.AsyncClient = Depends(get_http_client)) -> StoreClient:
    """Store bound to the shared client. Missing settings surface on the first query."""
    return StoreClient.from_settings(client)


async def read_json_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationError(message="Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError(message="Invalid JSON body")
    return data


def parse_body(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = f"Invalid value for {field}" if field else "Invalid JSON body"
        raise ValidationError(message=message, field=field)
