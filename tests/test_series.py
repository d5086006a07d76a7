"""Tests for samples, the bounded series buffer, and the current-value projection."""

from datetime import datetime, timezone

import pytest

from fan_dashboard.series import UNKNOWN, CurrentState, Sample, SeriesBuffer


def _sample(ts_ms: int, temperature: float = 25.0, fan_speed: int = 0) -> Sample:
    return Sample(
        timestamp=datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc),
        temperature=temperature,
        fan_speed=fan_speed,
    )


def _millis(sample: Sample) -> int:
    return round(sample.timestamp.timestamp() * 1000)


class TestSampleFromRecord:
    def test_parses_wire_record(self) -> None:
        s = Sample.from_record({"temperature": 25.5, "fanSpeed": 40, "timestamp": 1_700_000_000_000})
        assert s.temperature == 25.5
        assert s.fan_speed == 40
        assert s.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_numeric_strings_accepted(self) -> None:
        s = Sample.from_record({"temperature": "22.0", "fanSpeed": "10", "timestamp": "100"})
        assert s.temperature == 22.0
        assert s.fan_speed == 10
        assert _millis(s) == 100

    def test_missing_field_raises(self) -> None:
        with pytest.raises(ValueError, match="Malformed telemetry record"):
            Sample.from_record({"temperature": 25.0, "timestamp": 100})

    def test_non_numeric_raises(self) -> None:
        with pytest.raises(ValueError, match="Malformed telemetry record"):
            Sample.from_record({"temperature": "hot", "fanSpeed": 0, "timestamp": 100})

    def test_fan_speed_out_of_range_raises(self) -> None:
        with pytest.raises(ValueError, match="Fan speed must be 0-100"):
            Sample.from_record({"temperature": 25.0, "fanSpeed": 120, "timestamp": 100})

    @pytest.mark.parametrize("ts", [1e300, float("inf")])
    def test_timestamp_out_of_range_raises(self, ts: float) -> None:
        with pytest.raises(ValueError, match="Malformed telemetry record"):
            Sample.from_record({"temperature": 25.0, "fanSpeed": 10, "timestamp": ts})

    def test_fractional_fan_speed_raises(self) -> None:
        with pytest.raises(ValueError, match="whole percentage"):
            Sample.from_record({"temperature": 25.0, "fanSpeed": 55.7, "timestamp": 100})

    def test_integral_float_fan_speed_accepted(self) -> None:
        s = Sample.from_record({"temperature": 25.0, "fanSpeed": 55.0, "timestamp": 100})
        assert s.fan_speed == 55
        assert isinstance(s.fan_speed, int)

    def test_boolean_fan_speed_raises(self) -> None:
        with pytest.raises(ValueError, match="Malformed telemetry record"):
            Sample.from_record({"temperature": 25.0, "fanSpeed": True, "timestamp": 100})

    def test_sample_is_immutable(self) -> None:
        s = _sample(100)
        with pytest.raises(AttributeError):
            s.temperature = 30.0  # type: ignore[misc]


class TestCurrentState:
    def test_unknown_sentinel(self) -> None:
        assert UNKNOWN.temperature == 0.0
        assert UNKNOWN.fan_speed == 0
        assert UNKNOWN.timestamp is None
        assert UNKNOWN.known is False

    def test_of_sample(self) -> None:
        s = _sample(100, temperature=31.0, fan_speed=55)
        cur = CurrentState.of(s)
        assert cur == CurrentState(31.0, 55, s.timestamp)
        assert cur.known is True


class TestInsertOne:
    def test_never_exceeds_capacity(self) -> None:
        buf = SeriesBuffer()
        for i in range(120):
            buf.insert_one(_sample(i))
            assert len(buf) <= 50
        assert len(buf) == 50

    def test_newest_is_latest(self) -> None:
        buf = SeriesBuffer()
        for i in range(60):
            s = _sample(i)
            buf.insert_one(s)
            assert buf.latest() is s
            assert buf.snapshot()[-1] is s

    def test_evicts_oldest_by_insertion(self) -> None:
        buf = SeriesBuffer(capacity=3)
        for ts in (10, 20, 30, 40):
            buf.insert_one(_sample(ts))
        assert [_millis(s) for s in buf.snapshot()] == [20, 30, 40]

    def test_eviction_ignores_timestamp_value(self) -> None:
        buf = SeriesBuffer(capacity=2)
        buf.insert_one(_sample(500))
        buf.insert_one(_sample(100))
        buf.insert_one(_sample(300))
        assert [_millis(s) for s in buf.snapshot()] == [100, 300]

    def test_duplicate_timestamps_are_kept(self) -> None:
        buf = SeriesBuffer()
        buf.insert_one(_sample(100, temperature=20.0))
        buf.insert_one(_sample(100, temperature=21.0))
        assert len(buf) == 2


class TestInsertBatch:
    def test_sorts_chronologically(self) -> None:
        buf = SeriesBuffer()
        buf.insert_batch([_sample(300), _sample(100), _sample(200)])
        assert [_millis(s) for s in buf.snapshot()] == [100, 200, 300]

    def test_keeps_newest_when_truncating(self) -> None:
        buf = SeriesBuffer()
        buf.insert_batch([_sample(i) for i in range(80, 0, -1)])
        snap = buf.snapshot()
        assert len(snap) == 50
        assert _millis(snap[0]) == 31
        assert _millis(snap[-1]) == 80

    def test_replaces_existing_content(self) -> None:
        buf = SeriesBuffer()
        buf.insert_one(_sample(999))
        buf.insert_batch([_sample(1), _sample(2)])
        assert [_millis(s) for s in buf.snapshot()] == [1, 2]

    def test_empty_input_empties_buffer(self) -> None:
        buf = SeriesBuffer()
        buf.insert_one(_sample(1))
        buf.insert_batch([])
        assert buf.snapshot() == ()
        assert buf.latest() is None

    def test_capacity_still_enforced_after_batch(self) -> None:
        buf = SeriesBuffer(capacity=3)
        buf.insert_batch([_sample(1), _sample(2), _sample(3)])
        buf.insert_one(_sample(4))
        assert [_millis(s) for s in buf.snapshot()] == [2, 3, 4]


class TestSnapshot:
    def test_empty_buffer_snapshot(self) -> None:
        assert SeriesBuffer().snapshot() == ()

    def test_snapshot_is_detached_from_later_mutation(self) -> None:
        buf = SeriesBuffer(capacity=2)
        buf.insert_one(_sample(1))
        buf.insert_one(_sample(2))
        snap = buf.snapshot()
        buf.insert_one(_sample(3))
        assert [_millis(s) for s in snap] == [1, 2]
        assert isinstance(snap, tuple)

    def test_invalid_capacity_raises(self) -> None:
        with pytest.raises(ValueError, match="Capacity must be positive"):
            SeriesBuffer(capacity=0)
