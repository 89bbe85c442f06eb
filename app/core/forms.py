"""Request payload parsing shared by the route groups.

Handlers accept either a JSON object or an URL-encoded form. Forms are expanded into
nested objects using bracket notation, the way browser/jQuery-style clients send them:

    hotel[city]=Lisbon&guests[adults]=2  ->  {"hotel": {"city": "Lisbon"}, "guests": {"adults": "2"}}
    ids[]=1&ids[]=2                      ->  {"ids": ["1", "2"]}
"""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar
from urllib.parse import parse_qsl

from fastapi import HTTPException, Request, status
from pydantic import BaseModel, ValidationError

from app.core.middleware.body_limit import URLENCODED_CONTENT_TYPE, is_json_media_type, media_type_of

MAX_DEPTH = 5
MAX_PARAMETERS = 1000
# Numeric indices above this stay dict keys, so `a[100000]=x` cannot allocate a huge list.
MAX_ARRAY_INDEX = 20

_BRACKET_SEGMENT = re.compile(r"\[([^\[\]]*)\]")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _split_key(key: str) -> list[str]:
    """Split `a[b][c]` into ["a", "b", "c"], keeping anything past MAX_DEPTH as one literal segment."""

    first = key.find("[")
    if first <= 0:
        return [key]

    parts = [key[:first]]
    pos = first
    while len(parts) <= MAX_DEPTH:
        match = _BRACKET_SEGMENT.match(key, pos)
        if match is None:
            break
        parts.append(match.group(1))
        pos = match.end()

    if len(parts) == 1:
        return [key]
    if pos < len(key):
        parts.append(key[pos:])
    return parts


def _assign(container: dict[str, Any], parts: list[str], value: str) -> None:
    head, rest = parts[0], parts[1:]
    if not rest:
        existing = container.get(head)
        if existing is None:
            container[head] = value
        elif isinstance(existing, list):
            existing.append(value)
        elif isinstance(existing, str):
            container[head] = [existing, value]
        # Scalar after a nested value for the same key: keep the nested value.
        return

    if rest[0] == "":
        # `a[]=x` appends; deeper `a[][b]` is treated as a literal key.
        if len(rest) == 1:
            current = container.get(head)
            if isinstance(current, list):
                current.append(value)
            elif current is None:
                container[head] = [value]
            elif isinstance(current, str):
                container[head] = [current, value]
            return
        rest = ["".join(f"[{p}]" for p in rest)]

    child = container.get(head)
    if not isinstance(child, dict):
        if isinstance(child, list):
            child = {str(i): v for i, v in enumerate(child)}
        else:
            child = {}
        container[head] = child
    _assign(child, rest, value)


def _compact_arrays(node: Any) -> Any:
    """Turn dicts whose keys are all small integers into lists ordered by index."""

    if not isinstance(node, dict):
        if isinstance(node, list):
            return [_compact_arrays(v) for v in node]
        return node

    converted = {k: _compact_arrays(v) for k, v in node.items()}
    if converted and all(k.isdigit() and int(k) <= MAX_ARRAY_INDEX for k in converted):
        return [converted[k] for k in sorted(converted, key=int)]
    return converted


def parse_nested_form(raw: str) -> dict[str, Any]:
    """Parse an URL-encoded body into a nested dict (bracket notation, depth <= MAX_DEPTH)."""

    pairs = parse_qsl(raw, keep_blank_values=True, max_num_fields=None)[:MAX_PARAMETERS]
    out: dict[str, Any] = {}
    for key, value in pairs:
        if not key:
            continue
        _assign(out, _split_key(key), value)
    return {k: _compact_arrays(v) for k, v in out.items()}


async def read_payload(request: Request) -> dict[str, Any]:
    """Return the request body as a dict (JSON object or nested URL-encoded form)."""

    body = await request.body()
    if not body.strip():
        return {}

    media_type = media_type_of(request.headers.get("content-type"))

    if is_json_media_type(media_type):
        try:
            data = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Request body is not valid JSON",
            ) from exc
        if not isinstance(data, dict):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Request body must be a JSON object",
            )
        return data

    if media_type == URLENCODED_CONTENT_TYPE:
        try:
            raw = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Form body must be UTF-8 encoded",
            ) from exc
        return parse_nested_form(raw)

    raise HTTPException(
        status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        detail="Content-Type must be application/json or application/x-www-form-urlencoded",
    )


async def read_model(request: Request, model: type[ModelT]) -> ModelT:
    """Read the body with `read_payload` and validate it into `model` (422 on failure)."""

    payload = await read_payload(request)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False),
        ) from exc
