"""
Deadline wrapper and error types shared by the discussion search and
professor lookup pipelines.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CampusPulseError(Exception):
    """Base class for errors surfaced to API callers."""


class MissingParameterError(CampusPulseError):
    """A required query parameter was missing or blank."""

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Missing {parameter}")


class UpstreamTimeoutError(CampusPulseError):
    """An upstream call did not finish before its deadline."""

    def __init__(self, label: str, seconds: float):
        self.label = label
        self.seconds = seconds
        super().__init__(f"{label}:timeout after {seconds:g}s")


class UpstreamError(CampusPulseError):
    """An upstream call failed at the transport level (non-2xx, connection)."""


async def with_deadline(awaitable: Awaitable[T], seconds: float, label: str) -> T:
    """
    Await ``awaitable`` for at most ``seconds``.

    Raises UpstreamTimeoutError carrying ``label`` when the deadline passes.
    The same wrapper is used for per-item calls (one forum, one profile page)
    and for whole operations; callers decide whether a timeout is isolated or
    propagated.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        logger.debug("Deadline of %.1fs exceeded for %s", seconds, label)
        raise UpstreamTimeoutError(label, seconds) from None
