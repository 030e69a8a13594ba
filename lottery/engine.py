"""Number engine: generation, validation and scoring of 6-number sets.

Everything in this module is a pure function of its arguments. The only
source of non-determinism is the random source used by
:func:`generate_number_set`, which defaults to :func:`secrets.randbelow`
and can be swapped out by callers (tests pass a seeded generator).
"""

from __future__ import annotations

import datetime as dt
import math
import secrets
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, Sequence

from .errors import InvalidNumbers
from .types import NumberSet, PrizeLevel, WinnerValidation

MIN_NUMBER = 1
MAX_NUMBER = 50
NUMBERS_COUNT = 6
DEFAULT_MIN_PRIZE = Decimal("1000")
WINNING_MATCHES = 3

PRIZE_TIERS: Dict[int, PrizeLevel] = {
    6: PrizeLevel.JACKPOT,
    5: PrizeLevel.SECOND,
    4: PrizeLevel.THIRD,
    3: PrizeLevel.FOURTH,
}

PRIZE_SHARES: Dict[PrizeLevel, Decimal] = {
    PrizeLevel.JACKPOT: Decimal("0.60"),
    PrizeLevel.SECOND: Decimal("0.20"),
    PrizeLevel.THIRD: Decimal("0.15"),
    PrizeLevel.FOURTH: Decimal("0.05"),
}

# Fixed divisors of the jackpot combination count. These are not the exact
# hypergeometric odds of the lower tiers.
ODDS_DIVISORS: Dict[PrizeLevel, int] = {
    PrizeLevel.SECOND: 6,
    PrizeLevel.THIRD: 30,
    PrizeLevel.FOURTH: 200,
}

CENTS = Decimal("0.01")

RandBelow = Callable[[int], int]

NO_WIN = WinnerValidation(
    is_winner=False,
    match_count=0,
    prize_level=PrizeLevel.NONE,
    prize_amount=Decimal("0.00"),
)


def generate_number_set(randbelow: RandBelow = secrets.randbelow) -> NumberSet:
    """Draw 6 distinct numbers uniformly from [1, 50] and return them sorted.

    Values are drawn one at a time and duplicates are rejected.
    ``randbelow(n)`` must return a uniform integer in ``[0, n)``.
    """

    span = MAX_NUMBER - MIN_NUMBER + 1
    picked: set = set()
    while len(picked) < NUMBERS_COUNT:
        picked.add(MIN_NUMBER + randbelow(span))
    return tuple(sorted(picked))


def generate_quick_pick(randbelow: RandBelow = secrets.randbelow) -> NumberSet:
    return generate_number_set(randbelow)


def _is_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_number_set(numbers: Any) -> bool:
    if isinstance(numbers, (str, bytes)) or not isinstance(numbers, Sequence):
        return False
    if len(numbers) != NUMBERS_COUNT:
        return False
    for value in numbers:
        if not _is_number(value) or not MIN_NUMBER <= value <= MAX_NUMBER:
            return False
    return len(set(numbers)) == NUMBERS_COUNT


def normalize_number_set(numbers: Any) -> NumberSet:
    if not validate_number_set(numbers):
        raise InvalidNumbers(
            f"Numbers must be {NUMBERS_COUNT} unique integers between {MIN_NUMBER} and {MAX_NUMBER}",
            details={"numbers": numbers if isinstance(numbers, (list, tuple)) else None},
        )
    return tuple(sorted(numbers))


def to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return None
    if not result.is_finite():
        return None
    return result


def prize_share(level: PrizeLevel) -> Decimal:
    return PRIZE_SHARES.get(level, Decimal("0"))


def score_ticket(ticket_numbers: Any, winning_numbers: Any, total_prize: Any) -> WinnerValidation:
    """Score a ticket against the winning numbers.

    Malformed inputs on either side produce the no-win result instead of
    raising, so persisted data can always be scored.
    """

    if not validate_number_set(ticket_numbers) or not validate_number_set(winning_numbers):
        return NO_WIN
    prize_pool = to_decimal(total_prize)
    if prize_pool is None:
        return NO_WIN

    match_count = len(set(ticket_numbers).intersection(winning_numbers))
    level = PRIZE_TIERS.get(match_count, PrizeLevel.NONE)
    amount = (prize_pool * prize_share(level)).quantize(CENTS, rounding=ROUND_HALF_UP)

    return WinnerValidation(
        is_winner=match_count >= WINNING_MATCHES,
        match_count=match_count,
        prize_level=level,
        prize_amount=amount,
    )


def total_combinations() -> int:
    return math.comb(MAX_NUMBER - MIN_NUMBER + 1, NUMBERS_COUNT)


def _format_odds(count: int) -> str:
    return f"1 in {count:,}"


def compute_odds() -> Dict[str, str]:
    jackpot = total_combinations()
    odds = {PrizeLevel.JACKPOT.value: _format_odds(jackpot)}
    for level, divisor in ODDS_DIVISORS.items():
        rounded = (Decimal(jackpot) / divisor).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        odds[level.value] = _format_odds(int(rounded))
    return odds


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def validate_draw_parameters(
    draw_date: Any,
    total_prize: Any,
    *,
    now: Optional[dt.datetime] = None,
    min_prize: Any = DEFAULT_MIN_PRIZE,
) -> bool:
    """Return ``True`` when a draw may be created with these parameters.

    The draw date must be strictly in the future and the prize pool at least
    ``min_prize``. Naive datetimes are read as UTC.
    """

    if not isinstance(draw_date, dt.datetime):
        return False
    prize = to_decimal(total_prize)
    minimum = to_decimal(min_prize)
    if prize is None or minimum is None:
        return False
    reference = _as_utc(now) if now is not None else dt.datetime.now(dt.timezone.utc)
    return _as_utc(draw_date) > reference and prize >= minimum


__all__ = [
    "DEFAULT_MIN_PRIZE",
    "MAX_NUMBER",
    "MIN_NUMBER",
    "NO_WIN",
    "NUMBERS_COUNT",
    "PRIZE_SHARES",
    "compute_odds",
    "generate_number_set",
    "generate_quick_pick",
    "normalize_number_set",
    "prize_share",
    "score_ticket",
    "to_decimal",
    "total_combinations",
    "validate_draw_parameters",
    "validate_number_set",
]
