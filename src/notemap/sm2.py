"""SM-2 spaced repetition scheduling for subjects."""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Optional

MIN_EASE_FACTOR = 1.3
INITIAL_EASE_FACTOR = 2.5


class Quality(IntEnum):
    """Recall ratings offered after a review."""
    HARD = 3
    MEDIUM = 4
    EASY = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()


VALID_QUALITIES = frozenset(q.value for q in Quality)


class InvalidQuality(ValueError):
    """Raised when a rating is not one of Hard (3), Medium (4) or Easy (5)."""

    def __init__(self, quality):
        self.quality = quality
        super().__init__(f"Invalid quality {quality!r}: expected 3 (hard), 4 (medium) or 5 (easy)")


@dataclass(frozen=True)
class ReviewState:
    ease_factor: float = INITIAL_EASE_FACTOR
    repetitions: int = 0
    interval_days: int = 1
    next_review_at: Optional[datetime] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float, ndigits: int = 0) -> float:
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def validate_quality(quality) -> Quality:
    if isinstance(quality, bool) or not isinstance(quality, int) or quality not in VALID_QUALITIES:
        raise InvalidQuality(quality)
    return Quality(quality)


def _apply_sm2(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
) -> tuple[int, int, float]:
    """Raw SM-2 update without input validation.

    Returns (interval, repetitions, ease_factor) with the ease factor unrounded.
    """
    if quality < 3:
        # Failed recall: start over, ease unchanged
        return 1, 0, ease_factor

    deficit = 5 - quality
    new_ef = ease_factor + (0.1 - deficit * (0.08 + deficit * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    if repetitions == 0:
        new_interval = 1
    elif repetitions == 1:
        new_interval = 6
    else:
        new_interval = int(round_half_up(interval * new_ef))
    return new_interval, repetitions + 1, new_ef


def compute_next_review(
    quality: int,
    prior: ReviewState,
    now: Optional[datetime] = None,
) -> ReviewState:
    """Calculate the next review state using SM-2.

    Args:
        quality: 3 (hard), 4 (medium) or 5 (easy)
        prior: Current review state of the subject
        now: Reference time, defaults to the current UTC time

    Returns:
        New ReviewState. The caller is responsible for persisting it.

    Raises:
        InvalidQuality: quality is outside {3, 4, 5}.
    """
    quality = validate_quality(quality)
    now = now or _utcnow()
    interval, repetitions, ease_factor = _apply_sm2(
        quality,
        repetitions=prior.repetitions,
        ease_factor=prior.ease_factor,
        interval=prior.interval_days,
    )
    return ReviewState(
        ease_factor=round_half_up(ease_factor, 2),
        repetitions=repetitions,
        interval_days=interval,
        next_review_at=now + timedelta(days=interval),
    )


def initial_review_state(now: Optional[datetime] = None) -> ReviewState:
    """Review state for a subject that has never been reviewed."""
    now = now or _utcnow()
    return ReviewState(
        ease_factor=INITIAL_EASE_FACTOR,
        repetitions=0,
        interval_days=1,
        next_review_at=now + timedelta(days=1),
    )


def is_due(next_review_at: datetime, now: Optional[datetime] = None) -> bool:
    return next_review_at <= (now or _utcnow())
