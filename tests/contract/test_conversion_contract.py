"""
Contract tests for the conversion API.

Tests verify the API contract for the conversion endpoints:
- Request/response schemas
- Protocol Buffers wire format of the reply
- Documented routes and content types in the OpenAPI schema
"""

import struct

import pytest
from pydantic import ValidationError

from api.src.models.contract import PROTO_PACKAGE, TempConvertReply, TempConvertRequest
from api.src.models.conversion import ConversionReply, ConversionRequest, ErrorResponse


# ============================================================================
# SCHEMA CONTRACT
# ============================================================================


class TestConversionSchemas:
    """Contract tests for the Pydantic conversion schemas."""

    def test_request_schema_valid(self):
        """Test request schema accepts a number"""
        request = ConversionRequest(fahrenheit=212)
        assert request.fahrenheit == 212.0

    def test_request_schema_rejects_missing_field(self):
        """Test request schema requires fahrenheit"""
        with pytest.raises(ValidationError) as exc_info:
            ConversionRequest()

        errors = exc_info.value.errors()
        assert any(e["loc"] == ("fahrenheit",) for e in errors)

    def test_reply_json_shape(self):
        """Test the JSON reply holds exactly one celsius member"""
        reply = ConversionReply(celsius=100.0)
        assert reply.model_dump() == {"celsius": 100.0}

    def test_reply_schema_rejects_non_numeric(self):
        """Test reply schema rejects non-numeric celsius"""
        with pytest.raises(ValidationError):
            ConversionReply(celsius="warm")

    def test_error_response_requires_detail(self):
        """Test error responses carry a non-empty detail"""
        with pytest.raises(ValidationError):
            ErrorResponse(detail="")


# ============================================================================
# WIRE CONTRACT
# ============================================================================


class TestProtobufContract:
    """Contract tests for the tempconvert.contract messages."""

    def test_message_full_names(self):
        """Test messages live in the tempconvert.contract package"""
        assert TempConvertRequest.DESCRIPTOR.full_name == f"{PROTO_PACKAGE}.TempConvertRequest"
        assert TempConvertReply.DESCRIPTOR.full_name == f"{PROTO_PACKAGE}.TempConvertReply"

    def test_reply_field_layout(self):
        """Test celsius is double field number 1"""
        field = TempConvertReply.DESCRIPTOR.fields_by_name["celsius"]
        assert field.number == 1
        assert field.type == field.TYPE_DOUBLE

    def test_request_field_layout(self):
        """Test fahrenheit is double field number 1"""
        field = TempConvertRequest.DESCRIPTOR.fields_by_name["fahrenheit"]
        assert field.number == 1
        assert field.type == field.TYPE_DOUBLE

    def test_reply_wire_bytes(self):
        """Test the reply encodes as tag 0x09 followed by a little-endian double"""
        body = TempConvertReply(celsius=100.0).SerializeToString()
        assert body == b"\x09" + struct.pack("<d", 100.0)

    def test_zero_reply_is_empty(self):
        """Test a zero celsius value is omitted from the wire"""
        assert TempConvertReply(celsius=0.0).SerializeToString() == b""

    def test_request_round_trip(self):
        """Test request messages parse what they serialize"""
        message = TempConvertRequest()
        message.ParseFromString(TempConvertRequest(fahrenheit=-40.0).SerializeToString())
        assert message.fahrenheit == -40.0


# ============================================================================
# OPENAPI CONTRACT
# ============================================================================


class TestOpenAPIContract:
    """Contract tests for the published OpenAPI document."""

    @pytest.fixture(scope="class")
    def openapi(self):
        from api.src.main import app

        return app.openapi()

    def test_routes_documented(self, openapi):
        """Test every public route is documented"""
        for path in ("/", "/celsius", "/health", "/ready"):
            assert "get" in openapi["paths"][path]

    def test_celsius_content_types(self, openapi):
        """Test the conversion route documents all reply content types"""
        responses = openapi["paths"]["/celsius"]["get"]["responses"]
        content = responses["200"]["content"]

        assert {"text/plain", "application/json", "application/protobuf"} <= set(content)
        assert "400" in responses
        assert "500" in responses
