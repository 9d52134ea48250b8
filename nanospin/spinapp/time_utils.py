from __future__ import annotations

import time


def now() -> float:
    """Monotonic seconds; every raffle timestamp comes from here."""
    return time.monotonic()


def fmt_countdown(seconds: float) -> str:
    total = max(int(seconds), 0)
    minutes, secs = divmod(total, 60)
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"
