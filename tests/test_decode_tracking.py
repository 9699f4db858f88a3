"""Tests for resilient_json.utils.decode_tracking — per-session outcome counters."""

from __future__ import annotations

import asyncio

from resilient_json.utils import decode_tracking, logger


class TestDecodeTracking:
    """Tests for the decode_tracking module."""

    def test_reset_clears_counters(self) -> None:
        decode_tracking.record("DeepSeek", "recoverable_truncation", raw_length=100)
        decode_tracking.reset()
        assert decode_tracking.snapshot() == {"totalDecodes": 0, "totalChars": 0}

    def test_record_counts_outcomes(self) -> None:
        decode_tracking.record("DeepSeek", "well_formed", raw_length=10)
        decode_tracking.record("DeepSeek", "recoverable_truncation", raw_length=20)
        decode_tracking.record("Gemini", "recoverable_truncation", raw_length=30)
        snap = decode_tracking.snapshot()
        assert snap["totalDecodes"] == 3
        assert snap["totalChars"] == 60
        assert snap["well_formed"] == 1
        assert snap["recoverable_truncation"] == 2

    def test_repairs_grouped_by_source(self) -> None:
        decode_tracking.record("DeepSeek", "well_formed")
        decode_tracking.record("DeepSeek", "partial_recovery")
        decode_tracking.record("Gemini", "unrecoverable")
        assert dict(decode_tracking._get_stats().by_source) == {"DeepSeek": 1, "Gemini": 1}

    def test_log_summary_with_no_decodes(self) -> None:
        decode_tracking.log_summary()
        assert any("No responses were decoded" in line for line in logger.get_log_buffer())

    def test_log_summary_with_decodes(self) -> None:
        decode_tracking.record("DeepSeek", "recoverable_truncation", raw_length=100)
        decode_tracking.log_summary()
        lines = logger.get_log_buffer()
        assert any("Decode summary" in line and "truncated=1" in line for line in lines)
        assert any("Repairs by source" in line for line in lines)

    def test_concurrent_tasks_are_isolated(self) -> None:
        async def session(count: int) -> int:
            decode_tracking.reset()
            for _ in range(count):
                decode_tracking.record("LLM", "well_formed")
                await asyncio.sleep(0)
            return decode_tracking.snapshot()["totalDecodes"]

        async def main() -> list[int]:
            return await asyncio.gather(session(2), session(5))

        assert asyncio.run(main()) == [2, 5]
