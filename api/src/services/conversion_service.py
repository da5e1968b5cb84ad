"""
Temperature conversion service.

Validates the raw ``fahrenheit`` query value and converts it to Celsius.
Validation failures are raised as ``ConversionError`` subclasses, which the
application maps to HTTP 400 responses.
"""

import math
import re
from typing import Optional, Sequence

import structlog

from api.src.models.conversion import ConversionReply, ConversionRequest
from shared.tracing import trace_function

logger = structlog.get_logger(__name__)

FAHRENHEIT_PARAM = "fahrenheit"

# Digit run; single underscores may separate digits
_DIGITS = r"\d(?:_?\d)*"

# Decimal literal: optional sign, digits with optional fraction, optional exponent
_DECIMAL_LITERAL = re.compile(
    rf"[+-]?(?:{_DIGITS}(?:\.(?:{_DIGITS})?)?|\.{_DIGITS})(?:[eE][+-]?{_DIGITS})?",
    re.ASCII,
)
_INFINITY_LITERAL = re.compile(r"[+-]?inf(?:inity)?", re.IGNORECASE)
_NAN_LITERAL = re.compile(r"nan", re.IGNORECASE)


class ConversionError(Exception):
    """Base class for client errors raised while reading a conversion request."""

    error_type = "conversion_error"
    message = "invalid conversion request"

    def __init__(self, message: Optional[str] = None, value: Optional[str] = None):
        self.message = message or self.message
        self.value = value
        super().__init__(self.message)


class MissingParameterError(ConversionError):
    """The fahrenheit query parameter was not supplied."""

    error_type = "missing_parameter"
    message = "missing fahrenheit URL query param"


class InvalidParameterError(ConversionError):
    """The fahrenheit query parameter is not a base-10 floating-point number."""

    error_type = "invalid_value"
    message = "invalid fahrenheit value"


def parse_float(literal: str) -> float:
    """
    Parse a base-10 floating-point literal into a 64-bit float.

    Accepts an optional sign, digits with an optional fraction and an
    optional decimal exponent, plus ``inf``/``infinity`` (optionally signed)
    and ``nan`` in any case. Single ``_`` separators are allowed between
    digits. Rejects surrounding whitespace, misplaced or doubled
    underscores, hexadecimal floats and finite literals that overflow.

    Args:
        literal: Text to parse

    Returns:
        Parsed value

    Raises:
        InvalidParameterError: If the literal is not accepted
    """
    if _DECIMAL_LITERAL.fullmatch(literal):
        value = float(literal.replace("_", ""))
        if math.isinf(value):
            raise InvalidParameterError(value=literal)
        return value

    if _INFINITY_LITERAL.fullmatch(literal) or _NAN_LITERAL.fullmatch(literal):
        return float(literal)

    raise InvalidParameterError(value=literal)


def parse_fahrenheit(values: Sequence[str]) -> ConversionRequest:
    """
    Build a conversion request from the values of the fahrenheit parameter.

    Only the first occurrence is considered when the parameter is repeated.

    Args:
        values: Every value supplied for the parameter, in request order

    Returns:
        Validated conversion request

    Raises:
        MissingParameterError: If no value was supplied
        InvalidParameterError: If the first value does not parse
    """
    if not values:
        raise MissingParameterError()

    return ConversionRequest(fahrenheit=parse_float(values[0]))


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    """Convert degrees Fahrenheit to degrees Celsius."""
    return (fahrenheit - 32) * 5 / 9


@trace_function("celsius_resolver")
def celsius_resolver(request: ConversionRequest) -> ConversionReply:
    """
    Resolve a conversion request into its reply.

    Args:
        request: Validated conversion request

    Returns:
        Reply holding the temperature in Celsius
    """
    celsius = fahrenheit_to_celsius(request.fahrenheit)
    logger.debug("temperature_converted", fahrenheit=request.fahrenheit, celsius=celsius)
    return ConversionReply(celsius=celsius)
