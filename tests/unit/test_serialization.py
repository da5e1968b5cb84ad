"""
Unit tests for reply serialization.

Tests cover:
- Reply format selection from the Accept header
- Shortest round-trippable plain-text number formatting
- JSON, Protocol Buffers and plain-text encoding
- Decoding encoded replies back into models
- Serialization failures for values a format cannot represent
"""

import json
import math

import pytest

from api.src.models.conversion import ConversionReply
from api.src.services.serialization import (
    ReplyFormat,
    SerializationError,
    decode_reply,
    encode_reply,
    format_celsius,
    negotiate_format,
)


# ============================================================================
# FORMAT NEGOTIATION
# ============================================================================


class TestNegotiateFormat:
    """Test selection of the reply format."""

    @pytest.mark.parametrize(
        "accept, expected",
        [
            ("application/json", ReplyFormat.JSON),
            ("application/protobuf", ReplyFormat.PROTOBUF),
            ("Application/JSON; charset=utf-8", ReplyFormat.JSON),
            (" application/protobuf ", ReplyFormat.PROTOBUF),
            ("text/plain", ReplyFormat.TEXT),
            ("*/*", ReplyFormat.TEXT),
            ("application/xml", ReplyFormat.TEXT),
            ("", ReplyFormat.TEXT),
            (None, ReplyFormat.TEXT),
        ],
    )
    def test_selects_format(self, accept, expected):
        """Test Accept header values map to the expected format"""
        assert negotiate_format(accept) is expected

    def test_lists_are_not_negotiated(self):
        """Test a media type list is not split into alternatives"""
        assert negotiate_format("application/json, text/plain") is ReplyFormat.TEXT

    def test_media_types(self):
        """Test every format exposes its Content-Type"""
        assert ReplyFormat.JSON.media_type == "application/json"
        assert ReplyFormat.PROTOBUF.media_type == "application/protobuf"
        assert ReplyFormat.TEXT.media_type == "text/plain"


# ============================================================================
# PLAIN-TEXT FORMATTING
# ============================================================================


class TestFormatCelsius:
    """Test shortest round-trippable number formatting."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0.0, "0"),
            (100.0, "100"),
            (-40.0, "-40"),
            (37.5, "37.5"),
            (-17.77777777777778, "-17.77777777777778"),
            (123456.0, "123456"),
            (0.0001, "0.0001"),
        ],
    )
    def test_fixed_notation(self, value, expected):
        """Test values with a decimal exponent in [-4, 6) use fixed notation"""
        assert format_celsius(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1e6, "1e+06"),
            (1234567.0, "1.234567e+06"),
            (1.5e-05, "1.5e-05"),
            (-2.5e-10, "-2.5e-10"),
            (1e21, "1e+21"),
            (1.7976931348623157e308, "1.7976931348623157e+308"),
            (5e-324, "5e-324"),
        ],
    )
    def test_exponent_notation(self, value, expected):
        """Test large and tiny values switch to exponent notation"""
        assert format_celsius(value) == expected

    def test_negative_zero(self):
        """Test negative zero keeps its sign"""
        assert format_celsius(-0.0) == "-0"

    def test_special_values(self):
        """Test NaN and infinities"""
        assert format_celsius(math.nan) == "NaN"
        assert format_celsius(math.inf) == "+Inf"
        assert format_celsius(-math.inf) == "-Inf"

    @pytest.mark.parametrize("value", [0.1, 1 / 3, -17.77777777777778, 2.0 ** -30, 9007199254740993.0])
    def test_output_round_trips(self, value):
        """Test the formatted text parses back to the same float"""
        assert float(format_celsius(value)) == value


# ============================================================================
# ENCODING
# ============================================================================


class TestEncodeReply:
    """Test encoding replies per format."""

    def test_json_encoding(self):
        """Test JSON bodies hold a celsius member"""
        body = encode_reply(ConversionReply(celsius=100.0), ReplyFormat.JSON)
        assert json.loads(body) == {"celsius": 100.0}

    def test_json_rejects_non_finite(self):
        """Test JSON cannot carry infinities or NaN"""
        for value in (math.inf, -math.inf, math.nan):
            with pytest.raises(SerializationError) as exc_info:
                encode_reply(ConversionReply(celsius=value), ReplyFormat.JSON)

            assert exc_info.value.reply_format is ReplyFormat.JSON
            assert "unsupported value" in str(exc_info.value)

    def test_text_encoding(self):
        """Test plain text bodies hold the formatted number"""
        assert encode_reply(ConversionReply(celsius=0.0), ReplyFormat.TEXT) == b"0"
        assert encode_reply(ConversionReply(celsius=math.inf), ReplyFormat.TEXT) == b"+Inf"

    def test_protobuf_encodes_non_finite(self):
        """Test Protocol Buffers carries infinities"""
        body = encode_reply(ConversionReply(celsius=math.inf), ReplyFormat.PROTOBUF)
        assert decode_reply(body, ReplyFormat.PROTOBUF).celsius == math.inf


# ============================================================================
# DECODING
# ============================================================================


class TestDecodeReply:
    """Test decoding replies per format."""

    @pytest.mark.parametrize("reply_format", list(ReplyFormat))
    @pytest.mark.parametrize("celsius", [0.0, 100.0, -17.77777777777778, 1e-300])
    def test_round_trip(self, reply_format, celsius):
        """Test encoding then decoding yields the same celsius value"""
        reply = ConversionReply(celsius=celsius)
        assert decode_reply(encode_reply(reply, reply_format), reply_format) == reply

    def test_protobuf_round_trip_nan(self):
        """Test NaN survives a Protocol Buffers round trip"""
        body = encode_reply(ConversionReply(celsius=math.nan), ReplyFormat.PROTOBUF)
        assert math.isnan(decode_reply(body, ReplyFormat.PROTOBUF).celsius)

    @pytest.mark.parametrize(
        "body, reply_format",
        [
            (b"{not json", ReplyFormat.JSON),
            (b'{"fahrenheit": 1.0}', ReplyFormat.JSON),
            (b"\x09\x00", ReplyFormat.PROTOBUF),
            (b"hot", ReplyFormat.TEXT),
            (b"\xff\xfe", ReplyFormat.TEXT),
        ],
    )
    def test_malformed_bodies(self, body, reply_format):
        """Test malformed bodies raise SerializationError"""
        with pytest.raises(SerializationError) as exc_info:
            decode_reply(body, reply_format)

        assert exc_info.value.reply_format is reply_format
