"""
Reply serialization for the conversion endpoint.

Selects a reply format from the ``Accept`` header and encodes a
``ConversionReply`` as JSON, Protocol Buffers or plain text. Each format can
also be decoded again, for clients and tests.
"""

import math
from decimal import Decimal
from enum import Enum
from typing import Optional

import structlog
from google.protobuf.message import DecodeError
from pydantic import ValidationError

from api.src.models.contract import TempConvertReply
from api.src.models.conversion import ConversionReply
from shared.tracing import trace_function

logger = structlog.get_logger(__name__)


class SerializationError(Exception):
    """A reply could not be encoded or decoded in the requested format."""

    def __init__(self, message: str, reply_format: "ReplyFormat"):
        self.reply_format = reply_format
        super().__init__(message)


class ReplyFormat(str, Enum):
    """Reply representations keyed by media type."""

    JSON = "application/json"
    PROTOBUF = "application/protobuf"
    TEXT = "text/plain"

    @property
    def media_type(self) -> str:
        return self.value


def negotiate_format(accept: Optional[str]) -> ReplyFormat:
    """
    Select the reply format named by an ``Accept`` header.

    The header must name JSON or Protocol Buffers exactly (parameters and
    case are ignored); anything else, including a missing header or
    wildcards, selects plain text.

    Args:
        accept: Raw ``Accept`` header value

    Returns:
        Selected reply format
    """
    if not accept:
        return ReplyFormat.TEXT

    media_type = accept.split(";", 1)[0].strip().lower()
    if media_type == ReplyFormat.JSON.value:
        return ReplyFormat.JSON
    if media_type == ReplyFormat.PROTOBUF.value:
        return ReplyFormat.PROTOBUF
    return ReplyFormat.TEXT


def format_celsius(value: float) -> str:
    """
    Format a float with the fewest digits that round-trip.

    Uses fixed notation when the decimal exponent is in [-4, 6) and
    ``d.ddde±XX`` otherwise, so whole numbers carry no fraction
    (``100``) and large or tiny values switch to exponent form
    (``1e+06``, ``1.5e-05``).

    Args:
        value: Value to format

    Returns:
        Formatted number
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"

    shortest = Decimal(repr(value)).normalize()
    sign, digits, exponent = shortest.as_tuple()
    decimal_exponent = len(digits) + exponent - 1

    if -4 <= decimal_exponent < 6:
        return format(shortest, "f")

    significand = "".join(str(digit) for digit in digits)
    mantissa = significand[0]
    if len(significand) > 1:
        mantissa += "." + significand[1:]
    exponent_sign = "+" if decimal_exponent >= 0 else "-"
    return f"{'-' if sign else ''}{mantissa}e{exponent_sign}{abs(decimal_exponent):02d}"


def _encode_json(reply: ConversionReply) -> bytes:
    if not math.isfinite(reply.celsius):
        raise SerializationError(
            f"json: unsupported value: {format_celsius(reply.celsius)}",
            ReplyFormat.JSON,
        )
    return reply.model_dump_json().encode("utf-8")


def _encode_protobuf(reply: ConversionReply) -> bytes:
    return TempConvertReply(celsius=reply.celsius).SerializeToString()


def _encode_text(reply: ConversionReply) -> bytes:
    return format_celsius(reply.celsius).encode("utf-8")


_ENCODERS = {
    ReplyFormat.JSON: _encode_json,
    ReplyFormat.PROTOBUF: _encode_protobuf,
    ReplyFormat.TEXT: _encode_text,
}


@trace_function("encode_reply")
def encode_reply(reply: ConversionReply, reply_format: ReplyFormat) -> bytes:
    """
    Encode a reply in the given format.

    Args:
        reply: Conversion reply
        reply_format: Target representation

    Returns:
        Response body

    Raises:
        SerializationError: If the format cannot represent the reply
    """
    return _ENCODERS[reply_format](reply)


def decode_reply(body: bytes, reply_format: ReplyFormat) -> ConversionReply:
    """
    Decode a response body produced by ``encode_reply``.

    Args:
        body: Response body
        reply_format: Representation of the body

    Returns:
        Decoded reply

    Raises:
        SerializationError: If the body is malformed
    """
    try:
        if reply_format is ReplyFormat.JSON:
            return ConversionReply.model_validate_json(body)
        if reply_format is ReplyFormat.PROTOBUF:
            message = TempConvertReply()
            message.ParseFromString(body)
            return ConversionReply(celsius=message.celsius)
        return ConversionReply(celsius=float(body.decode("utf-8")))
    except (DecodeError, ValidationError, UnicodeDecodeError, ValueError) as e:
        logger.warning("reply_decode_failed", reply_format=reply_format.value, error=str(e))
        raise SerializationError(str(e), reply_format) from e
