"""Resilient decoding of JSON returned by language models."""

from resilient_json.config import DecoderSettings, get_settings
from resilient_json.decoder import EDITORIAL_REVIEW_HINTS, decode, decode_model, decode_result
from resilient_json.models.decoding import (
    DecodeDiagnostics,
    DecodeResult,
    DecodeWarning,
    FailedDecode,
    FullDecode,
    PartialDecode,
)
from resilient_json.models.hints import SchemaHints
from resilient_json.utils.errors import MalformedResponseError

__all__ = [
    "EDITORIAL_REVIEW_HINTS",
    "DecodeDiagnostics",
    "DecodeResult",
    "DecodeWarning",
    "DecoderSettings",
    "FailedDecode",
    "FullDecode",
    "MalformedResponseError",
    "PartialDecode",
    "SchemaHints",
    "decode",
    "decode_model",
    "decode_result",
    "get_settings",
]
