"""Wall-clock slot arithmetic shared by the availability checks, the validator and the move evaluator.

Slots are anything with ``start`` and ``end`` attributes holding ``HH:MM`` strings.
Boundaries compare as minutes since midnight and ranges are half-open, so two
slots that only touch at a boundary do not overlap.
"""
from __future__ import annotations

import re
from typing import Protocol

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SlotLike(Protocol):
    start: str
    end: str


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def hhmm_value(value: str) -> int:
    """Numeric ``HHMM`` reading of a time, e.g. ``"09:30"`` -> 930."""
    hours, minutes = value.split(":")
    return int(hours) * 100 + int(minutes)


def start_hour(slot: SlotLike) -> int:
    return int(slot.start.split(":")[0])


def bounds(slot: SlotLike) -> tuple[int, int]:
    return parse_time_to_minutes(slot.start), parse_time_to_minutes(slot.end)


def overlaps(a: SlotLike, b: SlotLike) -> bool:
    start_a, end_a = bounds(a)
    start_b, end_b = bounds(b)
    return not (end_a <= start_b or end_b <= start_a)


def contains(outer: SlotLike, inner: SlotLike) -> bool:
    outer_start, outer_end = bounds(outer)
    inner_start, inner_end = bounds(inner)
    return inner_start >= outer_start and inner_end <= outer_end


def slot_key(slot: SlotLike) -> str:
    return f"{slot.start}-{slot.end}"
