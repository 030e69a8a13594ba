from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class FlaskSettings:
    secret_key: str = "lottery-dev-secret"
    debug: bool = True


@dataclass(frozen=True)
class LotterySettings:
    ticket_price: Decimal = Decimal("5.00")
    max_tickets_per_user: int = 10
    min_prize: Decimal = Decimal("1000")
    base_prize: Decimal = Decimal("100000")
    draw_hour: int = 20
    draw_timezone: Optional[str] = None
    stats_window: int = 100


@dataclass(frozen=True)
class AppSettings:
    flask: FlaskSettings
    lottery: LotterySettings
    database_url: str
    admin_api_key: Optional[str]


def _int_from_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return int(value)


def _decimal_from_env(key: str, default: str) -> Decimal:
    value = os.getenv(key) or default
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise RuntimeError(f"Invalid decimal value for {key}: {value!r}") from exc


def load_lottery_settings() -> LotterySettings:
    draw_hour = _int_from_env("DRAW_HOUR", 20)
    if not 0 <= draw_hour <= 23:
        raise RuntimeError(f"DRAW_HOUR must be between 0 and 23, got {draw_hour}")

    return LotterySettings(
        ticket_price=_decimal_from_env("TICKET_PRICE", "5.00"),
        max_tickets_per_user=_int_from_env("MAX_TICKETS_PER_USER", 10),
        min_prize=_decimal_from_env("MIN_PRIZE", "1000"),
        base_prize=_decimal_from_env("BASE_PRIZE", "100000"),
        draw_hour=draw_hour,
        draw_timezone=os.getenv("DRAW_TIMEZONE") or None,
        stats_window=_int_from_env("STATS_WINDOW", 100),
    )


@lru_cache(maxsize=1)
def load_settings(dotenv_path: Optional[str] = None) -> AppSettings:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        load_dotenv()

    flask_settings = FlaskSettings(
        secret_key=os.getenv("FLASK_SECRET_KEY", "lottery-dev-secret"),
        debug=os.getenv("FLASK_DEBUG", "1") == "1",
    )

    database_url = os.getenv("DATABASE_URL", "sqlite:///lottery.db")
    admin_api_key = os.getenv("ADMIN_API_KEY")

    return AppSettings(
        flask=flask_settings,
        lottery=load_lottery_settings(),
        database_url=database_url,
        admin_api_key=admin_api_key,
    )
