"""Response envelope helpers and request body decoding.

Handlers answer every handled outcome with HTTP 200 and an envelope:

    {"status": "OK", ...data}
    {"status": "Error", "error": "failed to save course"}
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

STATUS_OK = "OK"
STATUS_ERROR = "Error"

M = TypeVar("M", bound=BaseModel)


class BadRequestError(Exception):
    """Request body is not valid JSON."""

    pass


def ok() -> dict[str, Any]:
    return {"status": STATUS_OK}


def error(msg: str) -> dict[str, Any]:
    return {"status": STATUS_ERROR, "error": msg}


def validation_error(err: ValidationError) -> dict[str, Any]:
    """Build an error envelope listing every invalid field.

    Example:
        {"status": "Error",
         "error": "field exam_date is a required field, field grade is not valid"}
    """
    messages = []
    for item in err.errors():
        field = ".".join(str(part) for part in item["loc"]) or "body"
        if item["type"] == "missing":
            messages.append(f"field {field} is a required field")
        else:
            messages.append(f"field {field} is not valid")

    return error(", ".join(messages))


async def read_json(request: Request) -> Any:
    """Read and parse the raw JSON body.

    Raises:
        BadRequestError: If the body is empty or not JSON
    """
    body = await request.body()
    if not body:
        raise BadRequestError("empty request body")
    try:
        return json.loads(body)
    except (ValueError, RecursionError) as e:
        # ValueError also covers JSONDecodeError and the int-digits limit
        raise BadRequestError(str(e)) from e


async def decode_body(request: Request, model: type[M]) -> M:
    """Read the body and validate it against `model`.

    Raises:
        BadRequestError: If the body is not JSON
        ValidationError: If the JSON does not match the model
    """
    return model.model_validate(await read_json(request))
