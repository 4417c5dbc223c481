"""Tests for leaderboard aggregation: windows, filtering, scoring and ordering."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from helpers.leaderboard import build_leaderboard, start_date_for

NOW = datetime(2024, 3, 15, 18, 0, tzinfo=timezone.utc)  # a Friday


def owner(oid: str, first: str = "Rep", last: str = "") -> dict:
    return {"id": oid, "firstName": first, "lastName": last or oid, "email": f"{oid}@example.com"}


def deal(owner_id: str, amount, closed: str, stage: str = "closedwon") -> dict:
    return {
        "id": f"deal-{owner_id}-{closed}",
        "properties": {
            "amount": amount,
            "closedate": closed,
            "dealstage": stage,
            "hubspot_owner_id": owner_id,
        },
    }


class TestStartDate:
    @pytest.mark.parametrize(
        "timeframe, expected",
        [
            ("day", datetime(2024, 3, 15, tzinfo=timezone.utc)),
            ("week", datetime(2024, 3, 10, tzinfo=timezone.utc)),
            ("month", datetime(2024, 3, 1, tzinfo=timezone.utc)),
            ("quarter", datetime(2024, 1, 1, tzinfo=timezone.utc)),
            ("year", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ],
    )
    def test_known_timeframes(self, timeframe, expected):
        assert start_date_for(timeframe, NOW) == expected

    def test_week_starting_on_sunday_is_that_day(self):
        sunday = datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)
        assert start_date_for("week", sunday) == datetime(2024, 3, 10, tzinfo=timezone.utc)

    def test_quarter_in_q3(self):
        aug = datetime(2024, 8, 20, 12, tzinfo=timezone.utc)
        assert start_date_for("quarter", aug) == datetime(2024, 7, 1, tzinfo=timezone.utc)

    def test_unknown_timeframe_stays_at_now(self):
        assert start_date_for("fortnight", NOW) == NOW


class TestBuildLeaderboard:
    def test_day_window_counts_today_and_excludes_yesterday(self):
        board = build_leaderboard(
            [owner("1")],
            [
                deal("1", "500", "2024-03-15T10:00:00Z"),
                deal("1", "900", "2024-03-14T23:00:00Z"),
            ],
            "day",
            now=NOW,
        )
        assert len(board) == 1
        assert board[0].deals == 1
        assert board[0].amount == 500.0
        assert board[0].points == pytest.approx(105.0)

    def test_only_closed_won_counts(self):
        board = build_leaderboard(
            [owner("1")],
            [
                deal("1", "100", "2024-03-15T10:00:00Z", stage="closedlost"),
                deal("1", "100", "2024-03-15T10:00:00Z", stage="appointmentscheduled"),
            ],
            "day",
            now=NOW,
        )
        assert board[0].deals == 0
        assert board[0].points == 0

    def test_non_numeric_amount_contributes_zero(self):
        board = build_leaderboard(
            [owner("1")],
            [
                deal("1", "not a number", "2024-03-15T10:00:00Z"),
                deal("1", None, "2024-03-15T11:00:00Z"),
                deal("1", "NaN", "2024-03-15T12:00:00Z"),
            ],
            "day",
            now=NOW,
        )
        assert board[0].deals == 3
        assert board[0].amount == 0.0
        assert board[0].points == 300

    def test_unparsable_close_date_is_excluded(self):
        board = build_leaderboard([owner("1")], [deal("1", "10", "someday")], "year", now=NOW)
        assert board[0].deals == 0

    def test_epoch_millis_close_date(self):
        millis = str(int(datetime(2024, 3, 15, 9, tzinfo=timezone.utc).timestamp() * 1000))
        board = build_leaderboard([owner("1")], [deal("1", "10", millis)], "day", now=NOW)
        assert board[0].deals == 1

    def test_every_owner_included_once_even_without_deals(self):
        owners = [owner("1"), owner("2"), owner("3")]
        board = build_leaderboard(owners, [deal("2", "50", "2024-03-12T10:00:00Z")], "week", now=NOW)
        assert sorted(e.id for e in board) == ["1", "2", "3"]
        assert board[0].id == "2"
        assert [e.points for e in board[1:]] == [0, 0]

    def test_deals_for_unknown_owner_are_dropped(self):
        board = build_leaderboard([owner("1")], [deal("99", "50", "2024-03-12T10:00:00Z")], "week", now=NOW)
        assert [(e.id, e.deals) for e in board] == [("1", 0)]

    def test_sorted_descending_and_stable_on_ties(self):
        owners = [owner("a"), owner("b"), owner("c"), owner("d")]
        deals = [
            deal("c", "1000", "2024-03-11T10:00:00Z"),
            deal("b", "0", "2024-03-11T10:00:00Z"),
            deal("d", "0", "2024-03-11T10:00:00Z"),
        ]
        board = build_leaderboard(owners, deals, "week", now=NOW)
        assert [e.id for e in board] == ["c", "b", "d", "a"]
        assert all(x.points >= y.points for x, y in zip(board, board[1:]))

    def test_idempotent(self):
        owners = [owner(str(i)) for i in range(5)]
        deals = [deal(str(i % 3), str(i * 10), "2024-03-02T10:00:00Z") for i in range(10)]
        first = build_leaderboard(owners, deals, "month", now=NOW)
        second = build_leaderboard(owners, deals, "month", now=NOW)
        assert [e.model_dump() for e in first] == [e.model_dump() for e in second]

    def test_unknown_timeframe_counts_nothing_in_the_past(self):
        board = build_leaderboard([owner("1")], [deal("1", "10", "2024-03-15T17:59:00Z")], "decade", now=NOW)
        assert board[0].deals == 0

    def test_name_and_email_come_from_owner(self):
        board = build_leaderboard([owner("7", "Ada", "Lovelace")], [], now=NOW)
        assert board[0].name == "Ada Lovelace"
        assert board[0].email == "7@example.com"
