from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def epoch_micros(value: datetime) -> int:
    # still exact as a Redis double score (< 2**53)
    return int(value.timestamp() * 1_000_000)
