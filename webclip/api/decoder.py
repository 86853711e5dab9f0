"""
Request Decoder
===============

Turns an inbound clip request into a target URL, an ordered list of preset
references and a parameter model.

Two encodings are accepted:
- ``POST`` with ``content-type: application/json``: a flat JSON object
- ``GET`` or any other ``POST``: form fields, from the URL-encoded body or
  the query string, coerced by the field table

Fields missing from the request stay unset.
"""

import math
import re
from typing import Any, Optional

from pydantic import ValidationError
from starlette.datastructures import FormData
from starlette.requests import Request

from webclip.core.errors import DecodeFailed, EmptyBody, FieldDecodeError, MethodNotAllowed
from webclip.models.params import PARAM_FIELDS, ClipParams, FieldKind, ParamField
from webclip.models.schemas import ClipRequestEnvelope, DecodedRequest

JSON_CONTENT_TYPE = "application/json"
UINT_RE = re.compile(r"[0-9]+")
UINT_MAX = 2**32 - 1


async def decode_request(request: Request) -> DecodedRequest:
    """
    Decode a clip request.

    Args:
        request: Incoming request

    Returns:
        DecodedRequest with URL, preset references and explicit parameters

    Raises:
        MethodNotAllowed: For methods other than GET and POST
        EmptyBody: For a JSON request without body
        DecodeFailed: For malformed JSON
        FieldDecodeError: For a form value that does not fit its field kind
    """
    method = request.method.upper()
    if method == "POST" and _media_type(request) == JSON_CONTENT_TYPE:
        return decode_json(await request.body())
    if method in ("GET", "POST"):
        form = await request.form() if method == "POST" else FormData()
        return decode_form(form, request.query_params)
    raise MethodNotAllowed(method)


def decode_json(body: bytes) -> DecodedRequest:
    """Decode a JSON request body."""
    if not body:
        raise EmptyBody()
    try:
        envelope = ClipRequestEnvelope.model_validate_json(body)
        params = ClipParams.model_validate_json(body)
    except ValidationError as e:
        raise DecodeFailed(f"json unmarshal failed: {e}") from e
    return DecodedRequest(url=envelope.url or "", presets=envelope.presets or [], params=params)


def decode_form(form: Any, query: Any) -> DecodedRequest:
    """
    Decode form fields.

    Body fields take precedence over query string fields of the same name.

    Args:
        form: Parsed request body fields
        query: Query string fields
    """
    def lookup(name: str) -> Optional[str]:
        value = form.get(name) if name in form else query.get(name)
        return value if isinstance(value, str) else None

    params = ClipParams()
    for field in PARAM_FIELDS:
        raw = lookup(field.name)
        if not raw:
            continue
        setattr(params, field.name, coerce_field(field, raw))

    presets = [ref.strip() for ref in (lookup("presets") or "").split(",")]
    return DecodedRequest(url=lookup("url") or "", presets=presets, params=params)


def coerce_field(field: ParamField, raw: str) -> Any:
    """
    Convert a form value to the field's kind.

    Raises:
        FieldDecodeError: If ``raw`` is not a valid value of the field's kind
    """
    if field.kind is FieldKind.UINT:
        if not UINT_RE.fullmatch(raw) or int(raw) > UINT_MAX:
            raise FieldDecodeError(field.name, field.kind.value, raw)
        return int(raw)
    if field.kind is FieldKind.BOOL:
        lowered = raw.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise FieldDecodeError(field.name, field.kind.value, raw)
    if field.kind is FieldKind.FLOAT:
        try:
            value = float(raw)
        except ValueError as e:
            raise FieldDecodeError(field.name, field.kind.value, raw) from e
        if not math.isfinite(value):
            raise FieldDecodeError(field.name, field.kind.value, raw)
        return value
    return raw


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";")[0].strip().lower()
