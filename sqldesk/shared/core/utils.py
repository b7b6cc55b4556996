"""Utility functions for sqldesk."""

from __future__ import annotations

import asyncio
import time


async def pad_to_min_duration(started: float, min_duration: float) -> None:
    """Sleep until at least ``min_duration`` seconds passed since ``started``.

    Args:
        started: ``time.monotonic()`` value taken when the fetch began.
        min_duration: Minimum visible loading time in seconds; 0 disables.
    """
    if min_duration <= 0:
        return
    remaining = min_duration - (time.monotonic() - started)
    if remaining > 0:
        await asyncio.sleep(remaining)


def format_duration_ms(ms: float) -> str:
    """Format milliseconds into a human-readable duration string."""
    if ms >= 1000:
        return f"{ms / 1000:.2f}s"
    elif ms >= 1:
        return f"{ms:.0f}ms"
    else:
        return f"{ms:.2f}ms"
