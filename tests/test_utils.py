from datetime import datetime, timezone

from xray_trace.utils import duration_ms, format_timestamp, generate_id, now, parse_timestamp


def test_generate_id_prefix_and_uniqueness():
    ids = {generate_id("trace") for _ in range(2000)}
    assert len(ids) == 2000
    assert all(i.startswith("trace_") for i in ids)


def test_now_is_truncated_to_milliseconds():
    assert now().microsecond % 1000 == 0


def test_timestamp_roundtrip_uses_z_suffix():
    dt = datetime(2024, 5, 1, 12, 30, 15, 123000, tzinfo=timezone.utc)
    text = format_timestamp(dt)
    assert text == "2024-05-01T12:30:15.123Z"
    assert parse_timestamp(text) == dt
    assert parse_timestamp("2024-05-01T12:30:15.123+00:00") == dt


def test_duration_ms():
    start = parse_timestamp("2024-05-01T12:00:00.000Z")
    end = parse_timestamp("2024-05-01T12:00:01.250Z")
    assert duration_ms(start, end) == 1250
