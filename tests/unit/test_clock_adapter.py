from datetime import UTC, datetime

from src.adapters.clock import FixedClock, SystemClock


def test_system_clock():
    clock = SystemClock()
    now = clock.now()
    assert now.tzinfo is not None
    # Sanity check: is it close to real now?
    diff = abs((datetime.now(UTC) - now).total_seconds())
    assert diff < 1.0


def test_fixed_clock():
    instant = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)
    clock = FixedClock(instant)
    assert clock.now() == instant

    later = datetime(2026, 3, 3, tzinfo=UTC)
    clock.advance_to(later)
    assert clock.now() == later
