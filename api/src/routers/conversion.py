"""
Conversion router.

Provides REST API endpoints for:
- The greeting at the service root
- Fahrenheit to Celsius conversion with content negotiation

Validation and serialization errors are raised to the application's
exception handlers, which turn them into plain-text 400 and 500 responses.
"""

import structlog
from typing import Optional
from fastapi import APIRouter, Header, Request, Response, status
from fastapi.responses import PlainTextResponse

from api.src.services.conversion_service import (
    FAHRENHEIT_PARAM,
    celsius_resolver,
    parse_fahrenheit,
)
from api.src.services.serialization import encode_reply, negotiate_format
from shared.metrics import setup_metrics

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Conversion"])

_, conversion_metrics = setup_metrics()

HELLO_MESSAGE = "Hello World!"


@router.get(
    "/",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Greeting",
)
async def hello() -> str:
    """Return the service greeting."""
    return HELLO_MESSAGE


@router.get(
    "/celsius",
    status_code=status.HTTP_200_OK,
    summary="Convert Fahrenheit to Celsius",
    description="""
    Convert the `fahrenheit` query parameter to degrees Celsius.

    **Reply format** is chosen from the `Accept` header:
    - `application/json`: `{"celsius": <number>}`
    - `application/protobuf`: serialized `tempconvert.contract.TempConvertReply`
    - anything else: the number as plain text

    **Error Responses:**
    - 400: Parameter missing or not a base-10 floating-point number
    - 500: Result cannot be represented in the requested format
    """,
    responses={
        200: {
            "description": "Converted temperature",
            "content": {
                "text/plain": {"example": "100"},
                "application/json": {"example": {"celsius": 100.0}},
                "application/protobuf": {},
            },
        },
        400: {
            "description": "Missing or invalid fahrenheit value",
            "content": {"text/plain": {"example": "invalid fahrenheit value"}},
        },
        500: {
            "description": "Serialization failure",
            "content": {"text/plain": {"example": "json: unsupported value: +Inf"}},
        },
    },
    response_class=Response,
)
async def celsius(
    request: Request,
    accept: Optional[str] = Header(default=None),
) -> Response:
    """
    Convert a Fahrenheit temperature and serialize the result.

    The query string is read directly so that a repeated parameter resolves
    to its first occurrence.

    Args:
        request: HTTP request
        accept: Accept header selecting the reply format

    Returns:
        Encoded reply with the matching Content-Type
    """
    conversion_request = parse_fahrenheit(request.query_params.getlist(FAHRENHEIT_PARAM))
    reply = celsius_resolver(conversion_request)

    reply_format = negotiate_format(accept)
    body = encode_reply(reply, reply_format)

    conversion_metrics.conversions_total.labels(format=reply_format.name.lower()).inc()
    logger.info(
        "conversion_completed",
        fahrenheit=conversion_request.fahrenheit,
        celsius=reply.celsius,
        reply_format=reply_format.value,
    )

    return Response(content=body, media_type=reply_format.media_type)
