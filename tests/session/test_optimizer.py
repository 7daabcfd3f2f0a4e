"""Tests for the session optimizer and compressed codec."""

import gzip

import msgpack
import pytest

from gremlin.session.models import (
    ElementInfo,
    ElementType,
    EventType,
    PerformanceSample,
    Session,
    SessionEvent,
    SessionValidationError,
    TapData,
)
from gremlin.session.optimizer import (
    ELEMENT_TYPE_CODES,
    CompressionStats,
    compress_optimized,
    compress_session,
    decompress_optimized,
    decompress_session,
    deoptimize_session,
    format_bytes,
    format_compression_stats,
    measure_compression,
    optimize_session,
    round_half_up,
)


class TestRounding:
    """Tests for the rounding rule."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (196.5, 197),
            (196.4, 196),
            (0.5, 1),
            (-0.5, 0),
            (-1.6, -2),
            (3, 3),
        ],
    )
    def test_round_half_up(self, value, expected):
        """Test that ties round towards positive infinity."""
        assert round_half_up(value) == expected


class TestOptimizeSession:
    """Tests for optimize_session / deoptimize_session."""

    def test_dt_rounded(self, sample_session):
        """Test that event deltas become integers."""
        optimized = optimize_session(sample_session)

        assert optimized.events[1].dt == 197
        assert optimized.events[3].dt == 1500

    def test_coordinates_rounded(self, sample_session):
        """Test that payload coordinates are rounded."""
        optimized = optimize_session(sample_session)

        assert optimized.events[1].data == {"kind": "tap", "x": 100, "y": 201, "elementIndex": 1}
        swipe = optimized.events[4].data
        assert (swipe["startY"], swipe["endY"], swipe["duration"]) == (601, 100, 251)

    def test_non_numeric_payload_untouched(self, sample_session):
        """Test that strings and flags survive optimization unchanged."""
        optimized = optimize_session(sample_session)

        assert optimized.events[2].data["value"] == "running shoes"
        assert optimized.events[4].data["direction"] == "up"

    def test_perf_scaled(self, sample_session):
        """Test fps and memory scaling."""
        perf = optimize_session(sample_session).events[0].perf

        assert perf.fps == 597
        assert perf.memory_usage == 45200
        assert perf.js_thread_lag == 3
        assert perf.time_since_navigation is None

    def test_element_type_codes(self, sample_session):
        """Test that element types become integer codes."""
        optimized = optimize_session(sample_session)

        assert [e.type for e in optimized.elements] == [
            ELEMENT_TYPE_CODES[ElementType.BUTTON],
            ELEMENT_TYPE_CODES[ElementType.INPUT],
            ELEMENT_TYPE_CODES[ElementType.SCROLL_VIEW],
        ]
        assert optimized.elements[0].bounds == [10, 21, 120, 45]

    def test_element_type_codes_are_unique(self):
        """Test that every element type has its own code."""
        assert len(set(ELEMENT_TYPE_CODES.values())) == len(ElementType)

    def test_deoptimize_restores_scales(self, sample_session):
        """Test that the inverse divides scaled metrics back."""
        restored = deoptimize_session(optimize_session(sample_session))

        assert restored.events[0].perf.fps == pytest.approx(59.7)
        assert restored.events[0].perf.memory_usage == pytest.approx(45.2)
        assert restored.events[7].perf.memory_usage == pytest.approx(51.875)
        assert restored.elements[2].type == ElementType.SCROLL_VIEW

    def test_invalid_session_rejected(self, sample_header):
        """Test that a session violating invariants is not optimized."""
        session = Session(
            header=sample_header,
            events=[SessionEvent(dt=0, type=EventType.TAP, data=TapData(x=1, y=1, element_index=7))],
        )

        with pytest.raises(SessionValidationError):
            optimize_session(session)


class TestCompression:
    """Tests for compress_session / decompress_session."""

    def test_round_trip_preserves_structure(self, sample_session):
        """Test that decompression restores the session up to precision."""
        restored = decompress_session(compress_session(sample_session))

        assert restored.header == sample_session.header
        assert len(restored.elements) == len(sample_session.elements)
        assert [e.type for e in restored.events] == [e.type for e in sample_session.events]
        assert [e.dt for e in restored.events] == [round_half_up(e.dt) for e in sample_session.events]
        assert restored.elements[0].test_id == "add-to-cart"
        assert restored.events[2].data.value == "running shoes"
        assert restored.events[6].data.kind == "double_tap"

    def test_output_is_gzip_of_msgpack(self, sample_session):
        """Test the container format."""
        buffer = compress_session(sample_session)

        assert buffer[:2] == b"\x1f\x8b"
        unpacked = msgpack.unpackb(gzip.decompress(buffer), raw=False)
        assert unpacked["header"]["sessionId"] == "lx2k9a-abc12345"
        assert unpacked["elements"][0]["type"] == ELEMENT_TYPE_CODES[ElementType.BUTTON]

    def test_output_is_deterministic(self, sample_session):
        """Test that identical sessions compress to identical bytes."""
        assert compress_session(sample_session) == compress_session(sample_session)

    def test_compression_level_from_settings(self, sample_session, monkeypatch):
        """Test that the gzip level is read from settings."""
        from gremlin.config import reset_settings

        monkeypatch.setenv("GREMLIN_COMPRESSION_LEVEL", "0")
        reset_settings()

        stored = compress_session(sample_session)
        best = compress_session(sample_session, level=9)

        assert len(stored) > len(best)

    def test_empty_session(self, sample_header):
        """Test that a session with no events or elements round-trips."""
        session = Session(header=sample_header)

        restored = decompress_session(compress_session(session))

        assert restored.events == []
        assert restored.elements == []
        assert restored.header == sample_header

    def test_optimized_round_trip(self, sample_session):
        """Test the lower-level optimized codec."""
        optimized = optimize_session(sample_session)

        assert decompress_optimized(compress_optimized(optimized)) == optimized

    @pytest.mark.parametrize(
        "buffer",
        [
            b"",
            b"not gzip at all",
            gzip.compress(b"\xc1\xc1\xc1"),
            gzip.compress(msgpack.packb([1, 2, 3])),
            gzip.compress(msgpack.packb({"elements": []})),
        ],
    )
    def test_corrupt_input_raises(self, buffer):
        """Test that corrupt buffers raise SessionValidationError."""
        with pytest.raises(SessionValidationError):
            decompress_session(buffer)

    def test_recompress_after_rounding(self, sample_header):
        """Test that a decompressed session compresses again when rounding stretches dt."""
        sample_header.end_time = sample_header.start_time + 1
        session = Session(
            header=sample_header,
            events=[
                SessionEvent(dt=0.5, type=EventType.TAP, data=TapData(x=1, y=1)),
                SessionEvent(dt=0.5, type=EventType.TAP, data=TapData(x=2, y=2)),
            ],
        )

        restored = decompress_session(compress_session(session))

        assert [e.dt for e in restored.events] == [1, 1]
        assert decompress_session(compress_session(restored)).events == restored.events

    def test_restored_session_is_validated(self, sample_session):
        """Test that a buffer with a dangling element index is rejected."""
        optimized = optimize_session(sample_session)
        optimized.events[1].data["elementIndex"] = 999

        with pytest.raises(SessionValidationError, match="element_index 999 out of range"):
            decompress_session(compress_optimized(optimized))

    def test_unknown_element_code_decodes_as_unknown(self, sample_session):
        """Test that an unrecognised type code is read as UNKNOWN."""
        optimized = optimize_session(sample_session)
        optimized.elements[0].type = 99

        restored = deoptimize_session(optimized)

        assert restored.elements[0].type == ElementType.UNKNOWN

    @pytest.mark.slow
    def test_compression_ratio_on_long_session(self, sample_header):
        """Test that a long, repetitive session compresses well."""
        sample_header.end_time = None
        events = []
        for i in range(1000):
            events.append(
                SessionEvent(
                    dt=16.7 + (i % 7),
                    type=EventType.TAP,
                    data=TapData(x=100.25 + (i % 13), y=240.75 + (i % 5), element_index=i % 3),
                    perf=PerformanceSample(fps=59.9, memory_usage=48.125, js_thread_lag=2.5),
                )
            )
        session = Session(
            header=sample_header,
            elements=[ElementInfo(type=ElementType.BUTTON, test_id=f"item-{n}") for n in range(3)],
            events=events,
        )

        stats = measure_compression(session)

        assert stats.final_ratio > 5
        assert stats.compressed_size < stats.optimized_size < stats.original_size


class TestCompressionStats:
    """Tests for measure_compression and its formatting."""

    def test_measure_sample_session(self, sample_session):
        """Test that ratios and breakdown are consistent."""
        stats = measure_compression(sample_session)

        assert stats.original_size > stats.compressed_size
        assert stats.compression_ratio == pytest.approx(stats.original_size / stats.compressed_size)
        assert stats.optimization_ratio == pytest.approx(stats.original_size / stats.optimized_size)
        assert stats.final_ratio == stats.compression_ratio
        assert set(stats.breakdown) == {"header", "elements", "events", "screenshots"}
        assert sum(stats.breakdown.values()) <= stats.original_size

    def test_mixed_session_ratio(self, sample_session):
        """Test that a session of mixed events shrinks by more than half."""
        assert len(sample_session.events) >= 7

        stats = measure_compression(sample_session)

        assert stats.final_ratio > 2

    def test_to_dict_keys(self):
        """Test the camelCase dictionary form."""
        stats = CompressionStats(100, 50, 20, 5.0, 2.0, 5.0, {"header": 10})

        assert stats.to_dict()["compressedSize"] == 20
        assert stats.to_dict()["breakdown"] == {"header": 10}

    def test_format_bytes(self):
        """Test human-readable sizes."""
        assert format_bytes(512) == "512 B"
        assert format_bytes(2048) == "2.00 KB"
        assert format_bytes(3 * 1024 * 1024) == "3.00 MB"

    def test_format_compression_stats(self):
        """Test the rendered report."""
        stats = CompressionStats(
            original_size=4096,
            optimized_size=2048,
            compressed_size=512,
            compression_ratio=8.0,
            optimization_ratio=2.0,
            final_ratio=8.0,
            breakdown={"header": 256, "elements": 512, "events": 3000, "screenshots": 2},
        )

        report = format_compression_stats(stats)

        assert report.startswith("Compression Statistics:")
        assert "Original (JSON):     4.00 KB" in report
        assert "Optimized (MsgPack): 2.00 KB (2.00x reduction)" in report
        assert "Final Ratio:         8.00x" in report
        assert "  Screenshots: 2 B" in report
