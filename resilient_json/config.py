"""
Decoder configuration.

Centralises the environment variable names and default values for
the repair heuristics.  Uses ``pydantic_settings.BaseSettings`` for
environment binding, type coercion, and validation; a local ``.env``
file is honoured through ``python-dotenv``.
"""

from __future__ import annotations

import functools

import dotenv
import pydantic
import pydantic_settings

from resilient_json.utils import logger

log = logger.create_logger("Decoder-Config")


class DecoderSettings(pydantic_settings.BaseSettings):
    """Tunable limits for the repair pipeline.

    Attributes:
        max_truncation_passes: Upper bound on re-applying
            truncation repair to its own output.
        long_string_threshold: Open strings at least this long
            inside a tail array are dropped, not closed.
        sentence_window: How far back from the end of an open
            string to look for a sentence boundary.
        excerpt_radius: Characters kept on each side of the
            parse-error offset in diagnostics.
        excerpt_head: Characters kept when no offset is known.
        truncation_length_threshold: Responses longer than this
            are always suspected of truncation.
        log_warnings: Whether truncation and salvage warnings are
            written to the log (callbacks fire regardless).
        debug: Whether debug lines are emitted.  The logger reads
            ``JSON_DECODER_DEBUG`` itself; the field documents it.
    """

    model_config = pydantic_settings.SettingsConfigDict(populate_by_name=True, extra="ignore")

    max_truncation_passes: int = pydantic.Field(
        default=5, ge=1, le=10, validation_alias="JSON_DECODER_MAX_TRUNCATION_PASSES"
    )
    long_string_threshold: int = pydantic.Field(
        default=1000, ge=1, validation_alias="JSON_DECODER_LONG_STRING_THRESHOLD"
    )
    sentence_window: int = pydantic.Field(
        default=500, ge=0, validation_alias="JSON_DECODER_SENTENCE_WINDOW"
    )
    excerpt_radius: int = pydantic.Field(
        default=100, ge=0, validation_alias="JSON_DECODER_EXCERPT_RADIUS"
    )
    excerpt_head: int = pydantic.Field(
        default=500, ge=0, validation_alias="JSON_DECODER_EXCERPT_HEAD"
    )
    truncation_length_threshold: int = pydantic.Field(
        default=30000, ge=1, validation_alias="JSON_DECODER_TRUNCATION_LENGTH_THRESHOLD"
    )
    log_warnings: bool = pydantic.Field(
        default=True, validation_alias="JSON_DECODER_LOG_WARNINGS"
    )
    debug: bool = pydantic.Field(default=False, validation_alias="JSON_DECODER_DEBUG")


@functools.lru_cache(maxsize=1)
def get_settings() -> DecoderSettings:
    """Load settings from the environment (and ``.env``) once.

    Returns:
        The cached ``DecoderSettings``.
    """
    dotenv.load_dotenv()
    settings = DecoderSettings()
    log.debug(
        "Decoder settings loaded",
        {
            "maxTruncationPasses": settings.max_truncation_passes,
            "longStringThreshold": settings.long_string_threshold,
        },
    )
    return settings
