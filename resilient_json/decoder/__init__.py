"""Repair cascade for LLM JSON responses."""

from resilient_json.decoder.pipeline import decode, decode_model, decode_result
from resilient_json.decoder.presets import EDITORIAL_REVIEW_HINTS

__all__ = ["EDITORIAL_REVIEW_HINTS", "decode", "decode_model", "decode_result"]
