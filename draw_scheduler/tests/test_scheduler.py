import asyncio
import datetime as dt
import unittest
from unittest import mock

from draw_scheduler.api_client import LotteryApiClient, LotteryApiError
from draw_scheduler.config import SchedulerSettings
from draw_scheduler.scheduler import DrawScheduler
from draw_scheduler.types import Action, DrawSnapshot

NOW = dt.datetime(2030, 5, 1, 12, 0, tzinfo=dt.timezone.utc)


class FakeClient:
    def __init__(self, current=None, conduct_error=None) -> None:
        self.current = current
        self.conduct_error = conduct_error
        self.scheduled = 0
        self.conducted = []
        self.closed = False

    async def get_current_draw(self):
        return self.current

    async def schedule_next_draw(self):
        self.scheduled += 1
        return DrawSnapshot(draw_id="next", draw_date=NOW + dt.timedelta(days=1), status="scheduled")

    async def conduct_draw(self, draw_id):
        if self.conduct_error is not None:
            raise self.conduct_error
        self.conducted.append(draw_id)
        return {"draw": {"id": draw_id, "winning_numbers": [1, 2, 3, 4, 5, 6]}, "winners_count": 2}

    async def close(self):
        self.closed = True


class DrawSchedulerTests(unittest.TestCase):
    def _make_settings(self) -> SchedulerSettings:
        return SchedulerSettings(api_url="http://lottery.test", admin_api_key="k", poll_interval_seconds=5)

    def _scheduler(self, client: FakeClient) -> DrawScheduler:
        return DrawScheduler(self._make_settings(), client, clock=lambda: NOW)

    def test_schedules_when_no_open_draw(self) -> None:
        client = FakeClient()

        result = asyncio.run(self._scheduler(client).run_once())

        self.assertEqual(result.action, Action.SCHEDULED)
        self.assertEqual(result.draw_id, "next")
        self.assertEqual(client.scheduled, 1)
        self.assertTrue(client.closed)

    def test_waits_for_future_draw(self) -> None:
        current = DrawSnapshot(draw_id="d1", draw_date=NOW + dt.timedelta(hours=3), status="scheduled")
        client = FakeClient(current=current)

        result = asyncio.run(self._scheduler(client).run_once())

        self.assertEqual(result.action, Action.SKIPPED)
        self.assertEqual(client.conducted, [])
        self.assertEqual(client.scheduled, 0)

    def test_conducts_due_draw(self) -> None:
        current = DrawSnapshot(draw_id="d2", draw_date=NOW - dt.timedelta(minutes=1), status="scheduled")
        client = FakeClient(current=current)

        result = asyncio.run(self._scheduler(client).run_once())

        self.assertEqual(result.action, Action.CONDUCTED)
        self.assertEqual(result.winners, 2)
        self.assertEqual(client.conducted, ["d2"])

    def test_already_completed_is_skipped(self) -> None:
        current = DrawSnapshot(draw_id="d3", draw_date=NOW, status="scheduled")
        error = LotteryApiError(409, "already_completed", "Draw already completed")
        client = FakeClient(current=current, conduct_error=error)

        result = asyncio.run(self._scheduler(client).run_once())

        self.assertEqual(result.action, Action.SKIPPED)

    def test_other_api_errors_propagate(self) -> None:
        current = DrawSnapshot(draw_id="d4", draw_date=NOW, status="scheduled")
        error = LotteryApiError(404, "draw_not_found", "Draw not found")
        client = FakeClient(current=current, conduct_error=error)

        with self.assertRaises(LotteryApiError):
            asyncio.run(self._scheduler(client).run_once())
        self.assertTrue(client.closed)


class DrawSnapshotTests(unittest.TestCase):
    def test_from_payload_parses_iso_date(self) -> None:
        snapshot = DrawSnapshot.from_payload(
            {"id": "abc", "draw_date": "2030-05-01T20:00:00Z", "status": "scheduled", "winning_numbers": None}
        )
        self.assertEqual(snapshot.draw_id, "abc")
        self.assertEqual(snapshot.draw_date, dt.datetime(2030, 5, 1, 20, 0, tzinfo=dt.timezone.utc))
        self.assertIsNone(snapshot.winning_numbers)

    def test_from_payload_requires_id(self) -> None:
        with self.assertRaises(ValueError):
            DrawSnapshot.from_payload({"draw_date": "2030-05-01T20:00:00"})


class LotteryApiClientTests(unittest.TestCase):
    def _response(self, status_code, payload):
        resp = mock.Mock()
        resp.status_code = status_code
        resp.reason = "reason"
        resp.json.return_value = payload
        return resp

    def test_error_envelope_raises(self) -> None:
        session = mock.Mock()
        session.headers = {}
        session.request.return_value = self._response(
            409, {"success": False, "error": {"code": "already_completed", "message": "done"}}
        )
        client = LotteryApiClient(SchedulerSettings(api_url="http://lottery.test", admin_api_key="k"), session)

        with self.assertRaises(LotteryApiError) as ctx:
            asyncio.run(client.conduct_draw("d1"))

        self.assertEqual(ctx.exception.code, "already_completed")
        self.assertEqual(session.headers["X-Admin-Token"], "k")
        session.request.assert_called_once_with(
            "POST", "http://lottery.test/api/admin/draws/d1/conduct", timeout=10
        )

    def test_empty_current_draw_returns_none(self) -> None:
        session = mock.Mock()
        session.headers = {}
        session.request.return_value = self._response(200, {"success": True, "data": None})
        client = LotteryApiClient(SchedulerSettings(api_url="http://lottery.test"), session)

        self.assertIsNone(asyncio.run(client.get_current_draw()))


if __name__ == "__main__":
    unittest.main()
