import datetime as dt
import os
import random
import time
import unittest
from contextlib import nullcontext
from decimal import Decimal
from unittest import mock
from zoneinfo import ZoneInfo

from lottery.config import LotterySettings
from lottery.errors import (
    AlreadyCompleted,
    DrawClosed,
    DrawNotFound,
    DrawUnavailable,
    InvalidNumbers,
    InvalidParameters,
    TicketLimitExceeded,
)
from lottery.services.lifecycle import DrawLifecycleManager
from lottery.types import DrawStatus, PrizeLevel

NOW = dt.datetime(2030, 3, 10, 9, 30, tzinfo=dt.timezone.utc)


class FakeStore:
    """In-memory store with the same contract as the SQL store."""

    def __init__(self) -> None:
        self.draws = {}
        self.tickets = {}
        self.lose_next_update = False

    def get_current_draw(self):
        open_draws = [d for d in self.draws.values() if d.status.accepts_tickets]
        return min(open_draws, key=lambda d: d.draw_date) if open_draws else None

    def get_draw(self, draw_id):
        return self.draws.get(draw_id)

    def list_recent_draws(self, limit=10):
        ordered = sorted(self.draws.values(), key=lambda d: d.draw_date, reverse=True)
        return ordered[:limit]

    def create_draw(self, draw):
        self.draws[draw.id] = draw
        return draw

    def update_winning_numbers(self, draw_id, numbers):
        draw = self.draws.get(draw_id)
        if draw is None or draw.status is DrawStatus.COMPLETED:
            return None
        if self.lose_next_update:
            self.draws[draw_id] = draw.copy(status=DrawStatus.COMPLETED, winning_numbers=(7, 8, 9, 10, 11, 12))
            return None
        updated = draw.copy(status=DrawStatus.COMPLETED, winning_numbers=tuple(numbers))
        self.draws[draw_id] = updated
        return updated

    def get_tickets_for_draw(self, draw_id):
        return [t for t in self.tickets.values() if t.draw_id == draw_id]

    def get_tickets_for_user(self, user_id):
        return [t for t in self.tickets.values() if t.user_id == user_id]

    def create_ticket(self, ticket):
        self.tickets[ticket.id] = ticket
        draw = self.draws[ticket.draw_id]
        self.draws[draw.id] = draw.copy(tickets_sold=draw.tickets_sold + 1)
        return ticket

    def set_ticket_winner(self, ticket_id, is_winner):
        ticket = self.tickets[ticket_id].copy(is_winner=is_winner)
        self.tickets[ticket_id] = ticket
        return ticket

    def ticket_guard(self, user_id, draw_id):
        return nullcontext()


def scripted_source(values):
    """randbelow replacement yielding ``value - 1`` for each wanted number."""
    iterator = iter(values)
    return lambda n: next(iterator) - 1


class LifecycleTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = FakeStore()
        self.settings = LotterySettings(ticket_price=Decimal("5.00"), max_tickets_per_user=10)
        self.manager = self._manager()

    def _manager(self, randbelow=None, settings=None):
        return DrawLifecycleManager(
            self.store,
            settings or self.settings,
            clock=lambda: NOW,
            randbelow=randbelow or random.Random(3).randrange,
        )

    def _draw(self, days=1, prize=1000000):
        return self.manager.create_draw(NOW + dt.timedelta(days=days), prize)


class CreateDrawTests(LifecycleTestCase):
    def test_creates_scheduled_draw(self) -> None:
        draw = self._draw()
        self.assertEqual(draw.status, DrawStatus.SCHEDULED)
        self.assertEqual(draw.tickets_sold, 0)
        self.assertIsNone(draw.winning_numbers)
        self.assertEqual(draw.total_prize, Decimal("1000000"))
        self.assertIs(self.store.get_draw(draw.id), draw)

    def test_past_date_rejected(self) -> None:
        with self.assertRaises(InvalidParameters):
            self.manager.create_draw(NOW - dt.timedelta(hours=1), 5000)

    def test_prize_below_minimum_rejected(self) -> None:
        with self.assertRaises(InvalidParameters):
            self.manager.create_draw(NOW + dt.timedelta(days=1), 999)
        self.assertEqual(self.store.draws, {})

    def test_naive_date_stored_as_utc(self) -> None:
        draw = self.manager.create_draw(dt.datetime(2030, 3, 11, 20, 0), 5000)
        self.assertEqual(draw.draw_date.tzinfo, dt.timezone.utc)


class PurchaseTicketTests(LifecycleTestCase):
    def test_purchase_creates_sorted_ticket(self) -> None:
        draw = self._draw()
        ticket = self.manager.purchase_ticket("alice", draw.id, [6, 5, 4, 3, 2, 1])

        self.assertEqual(ticket.numbers, (1, 2, 3, 4, 5, 6))
        self.assertEqual(ticket.price, Decimal("5.00"))
        self.assertEqual(ticket.purchase_date, NOW)
        self.assertFalse(ticket.is_winner)
        self.assertEqual(self.store.get_draw(draw.id).tickets_sold, 1)

    def test_invalid_numbers(self) -> None:
        draw = self._draw()
        with self.assertRaises(InvalidNumbers):
            self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 5])

    def test_no_current_draw(self) -> None:
        with self.assertRaises(DrawUnavailable):
            self.manager.purchase_ticket("alice", "missing", [1, 2, 3, 4, 5, 6])

    def test_draw_id_must_match_current(self) -> None:
        current = self._draw(days=1)
        later = self._draw(days=2)
        with self.assertRaises(DrawUnavailable):
            self.manager.purchase_ticket("alice", later.id, [1, 2, 3, 4, 5, 6])
        self.manager.purchase_ticket("alice", current.id, [1, 2, 3, 4, 5, 6])

    def test_closed_draw(self) -> None:
        draw = self._draw()
        closed = draw.copy(status=DrawStatus.COMPLETED)
        self.store.get_current_draw = lambda: closed
        with self.assertRaises(DrawClosed):
            self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])

    def test_active_draw_accepts_tickets(self) -> None:
        draw = self._draw()
        self.store.draws[draw.id] = draw.copy(status=DrawStatus.ACTIVE)
        ticket = self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])
        self.assertEqual(ticket.draw_id, draw.id)

    def test_ticket_limit_per_user_and_draw(self) -> None:
        draw = self._draw()
        for i in range(10):
            self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 10 + i])

        with self.assertRaises(TicketLimitExceeded):
            self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])

        # other users are unaffected
        self.manager.purchase_ticket("bob", draw.id, [1, 2, 3, 4, 5, 6])
        self.assertEqual(len(self.store.get_tickets_for_user("alice")), 10)


class ConductDrawTests(LifecycleTestCase):
    def test_conduct_marks_winners(self) -> None:
        draw = self._draw()
        jackpot = self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])
        fourth = self.manager.purchase_ticket("bob", draw.id, [1, 2, 3, 40, 41, 42])
        loser = self.manager.purchase_ticket("carol", draw.id, [1, 2, 43, 44, 45, 46])

        manager = self._manager(randbelow=scripted_source([6, 5, 4, 3, 2, 1]))
        outcome = manager.conduct_draw(draw.id)

        self.assertEqual(outcome.draw.status, DrawStatus.COMPLETED)
        self.assertEqual(outcome.draw.winning_numbers, (1, 2, 3, 4, 5, 6))
        by_ticket = {w.ticket.id: w.validation for w in outcome.winners}
        self.assertEqual(set(by_ticket), {jackpot.id, fourth.id})
        self.assertEqual(by_ticket[jackpot.id].prize_level, PrizeLevel.JACKPOT)
        self.assertEqual(by_ticket[jackpot.id].prize_amount, Decimal("600000.00"))
        self.assertEqual(by_ticket[fourth.id].prize_amount, Decimal("50000.00"))

        self.assertTrue(self.store.tickets[jackpot.id].is_winner)
        self.assertTrue(self.store.tickets[fourth.id].is_winner)
        self.assertFalse(self.store.tickets[loser.id].is_winner)

    def test_unknown_draw(self) -> None:
        with self.assertRaises(DrawNotFound):
            self.manager.conduct_draw("nope")

    def test_non_current_draw_not_found(self) -> None:
        self._draw(days=1)
        later = self._draw(days=2)
        with self.assertRaises(DrawNotFound):
            self.manager.conduct_draw(later.id)

    def test_second_conduct_is_rejected_without_changes(self) -> None:
        draw = self._draw()
        ticket = self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])
        self._manager(randbelow=scripted_source([1, 2, 3, 4, 5, 6])).conduct_draw(draw.id)

        completed = self.store.get_draw(draw.id)
        flags = {t.id: t.is_winner for t in self.store.tickets.values()}

        with self.assertRaises(AlreadyCompleted):
            self._manager(randbelow=scripted_source([10, 11, 12, 13, 14, 15])).conduct_draw(draw.id)

        self.assertEqual(self.store.get_draw(draw.id), completed)
        self.assertEqual({t.id: t.is_winner for t in self.store.tickets.values()}, flags)
        self.assertTrue(self.store.tickets[ticket.id].is_winner)

    def test_lost_race_raises_already_completed(self) -> None:
        draw = self._draw()
        ticket = self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])
        self.store.lose_next_update = True

        with self.assertRaises(AlreadyCompleted):
            self._manager(randbelow=scripted_source([1, 2, 3, 4, 5, 6])).conduct_draw(draw.id)

        self.assertEqual(self.store.get_draw(draw.id).winning_numbers, (7, 8, 9, 10, 11, 12))
        self.assertFalse(self.store.tickets[ticket.id].is_winner)

    def test_conduct_closes_ticket_sales(self) -> None:
        draw = self._draw()
        self.manager.conduct_draw(draw.id)
        with self.assertRaises(DrawUnavailable):
            self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])


class ScheduleNextDrawTests(LifecycleTestCase):
    def test_tomorrow_at_draw_hour_in_configured_zone(self) -> None:
        settings = LotterySettings(base_prize=Decimal("100000"), draw_hour=20, draw_timezone="Europe/Berlin")
        draw = self._manager(settings=settings).schedule_next_draw()

        local = draw.draw_date.astimezone(ZoneInfo("Europe/Berlin"))
        self.assertEqual((local.year, local.month, local.day), (2030, 3, 11))
        self.assertEqual((local.hour, local.minute, local.second), (20, 0, 0))
        self.assertEqual(draw.total_prize, Decimal("100000"))
        self.assertEqual(draw.status, DrawStatus.SCHEDULED)

    def test_uses_configured_base_prize(self) -> None:
        settings = LotterySettings(base_prize=Decimal("250000"), draw_timezone="UTC")
        draw = self._manager(settings=settings).schedule_next_draw()
        self.assertEqual(draw.total_prize, Decimal("250000"))
        self.assertEqual(draw.draw_date, dt.datetime(2030, 3, 11, 20, 0, tzinfo=ZoneInfo("UTC")))

    @unittest.skipUnless(hasattr(time, "tzset"), "needs time.tzset")
    def test_system_zone_offset_follows_target_date(self) -> None:
        # The day after this clock is the first day of summer time in Berlin.
        eve_of_dst = dt.datetime(2030, 3, 30, 9, 30, tzinfo=dt.timezone.utc)
        self.addCleanup(time.tzset)
        with mock.patch.dict(os.environ, {"TZ": "Europe/Berlin"}):
            time.tzset()
            manager = DrawLifecycleManager(
                self.store,
                LotterySettings(draw_hour=20),
                clock=lambda: eve_of_dst,
                randbelow=random.Random(3).randrange,
            )
            draw = manager.schedule_next_draw()

        self.assertEqual(draw.draw_date.utcoffset(), dt.timedelta(hours=2))
        self.assertEqual(
            draw.draw_date.astimezone(dt.timezone.utc),
            dt.datetime(2030, 3, 31, 18, 0, tzinfo=dt.timezone.utc),
        )


class StatisticsTests(LifecycleTestCase):
    def test_aggregates_recent_draws(self) -> None:
        first = self._draw(days=1, prize=5000)
        self.manager.purchase_ticket("alice", first.id, [1, 2, 3, 4, 5, 6])
        self.manager.purchase_ticket("bob", first.id, [1, 2, 3, 4, 5, 7])
        self.manager.conduct_draw(first.id)
        second = self._draw(days=2, prize=8000)
        self.manager.purchase_ticket("alice", second.id, [1, 2, 3, 4, 5, 6])

        stats = self.manager.get_statistics()

        self.assertEqual(stats.total_draws, 2)
        self.assertEqual(stats.total_tickets_sold, 3)
        self.assertEqual(stats.total_prizes_awarded, Decimal("5000"))
        self.assertEqual(stats.odds["jackpot"], "1 in 15,890,700")

    def test_window_bounds_draws(self) -> None:
        for days in range(1, 6):
            self._draw(days=days)
        manager = self._manager(settings=LotterySettings(stats_window=3))
        self.assertEqual(manager.get_statistics().total_draws, 3)


class ReadOperationTests(LifecycleTestCase):
    def test_draw_details(self) -> None:
        draw = self._draw()
        self.manager.purchase_ticket("alice", draw.id, [1, 2, 3, 4, 5, 6])
        self.manager.purchase_ticket("bob", draw.id, [20, 21, 22, 23, 24, 25])
        self._manager(randbelow=scripted_source([1, 2, 3, 4, 5, 6])).conduct_draw(draw.id)

        details = self.manager.get_draw_details(draw.id)
        self.assertEqual(details.ticket_count, 2)
        self.assertEqual(details.winning_tickets, 1)

        with self.assertRaises(DrawNotFound):
            self.manager.get_draw_details("missing")

    def test_quick_pick_is_valid(self) -> None:
        numbers = self.manager.generate_quick_pick()
        self.assertEqual(len(numbers), 6)
        self.assertEqual(list(numbers), sorted(set(numbers)))


if __name__ == "__main__":
    unittest.main()
