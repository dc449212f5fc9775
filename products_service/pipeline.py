"""
Request stages run, in order, before routing.

``REQUEST_STAGES`` is the ordered chain the app middleware walks for every
request; a stage short-circuits the request by raising. The Validation Gate
runs after routing, as a dependency of the mutating routes only.
"""
import json
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Tuple

import pydantic
from fastapi import Request
from loguru import logger

from .errors import AuthError, ValidationError
from .schemas import ProductPayload

PROTECTED_PREFIX = "/api/"
API_KEY_HEADER = "x-api-key"
INVALID_API_KEY = "Invalid or missing API key"
INVALID_PRODUCT = "All fields (name, description, price, category, inStock) are required and must be valid"


class Stage(NamedTuple):
    name: str
    applies: Callable[[Request], bool]
    run: Callable[[Request], None]


def always(request: Request) -> bool:
    return True


def is_protected(request: Request) -> bool:
    return request.url.path.startswith(PROTECTED_PREFIX)


def log_request(request: Request) -> None:
    timestamp = datetime.now(timezone.utc).isoformat()
    logger.info(f"{timestamp} - {request.method} {request.url.path}")


def authenticate(request: Request) -> None:
    expected = request.app.state.settings.api_key
    provided = request.headers.get(API_KEY_HEADER)
    if not provided or expected is None or provided != expected:
        raise AuthError(INVALID_API_KEY)


REQUEST_STAGES: Tuple[Stage, ...] = (
    Stage("logger", always, log_request),
    Stage("authentication", is_protected, authenticate),
)


def run_stages(request: Request, stages: Tuple[Stage, ...] = REQUEST_STAGES) -> None:
    for stage in stages:
        if stage.applies(request):
            stage.run(request)


async def validated_payload(request: Request) -> ProductPayload:
    """Validation Gate for create/update: the whole body passes or nothing does."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(INVALID_PRODUCT)
    try:
        return ProductPayload.model_validate(body)
    except pydantic.ValidationError:
        raise ValidationError(INVALID_PRODUCT)
