"""
Conversion request and reply models.

Pydantic schemas for the temperature conversion endpoint. They are used
inside the service and double as the JSON representation of a reply.
"""

from pydantic import BaseModel, ConfigDict, Field


class ConversionRequest(BaseModel):
    """Temperature to convert, in degrees Fahrenheit."""

    fahrenheit: float = Field(..., description="Temperature in degrees Fahrenheit")

    model_config = ConfigDict(frozen=True)


class ConversionReply(BaseModel):
    """Converted temperature, in degrees Celsius."""

    celsius: float = Field(..., description="Temperature in degrees Celsius")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={"examples": [{"celsius": 100.0}]},
    )


class ErrorResponse(BaseModel):
    """Error response schema used for JSON error bodies."""

    detail: str = Field(..., min_length=1)
