# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import date, datetime

from wellness.stores import aggregates
from wellness.stores.models import JournalEntry, LeaderboardUser, LoggedMeal

TODAY = date(2024, 3, 15)


def _meal(meal_id: str, day: str, calories: float = 100) -> LoggedMeal:
    return LoggedMeal(id=meal_id, timestamp=1710500000000, date=day, name=f"meal {meal_id}", calories=calories)


def _entry(entry_id: str, day: str) -> JournalEntry:
    return JournalEntry(id=entry_id, timestamp=1710500000000, date=day, content="...")


class TestDayFilters(unittest.TestCase):
    def test_today_only_matches_calendar_day(self) -> None:
        meals = [_meal("1", "2024-03-15"), _meal("2", "2024-03-14"), _meal("3", "2024-03-16")]
        self.assertEqual([m.id for m in aggregates.today_only(meals, TODAY)], ["1"])

    def test_record_day_falls_back_to_local_timestamp(self) -> None:
        ts = int(datetime(2024, 3, 10, 23, 30).timestamp() * 1000)
        entry = JournalEntry(id="x", timestamp=ts, content="late night")
        self.assertEqual(aggregates.record_day(entry), date(2024, 3, 10))

    def test_window_is_inclusive(self) -> None:
        meals = [_meal(str(d), f"2024-03-{d:02d}") for d in range(9, 18)]
        week = aggregates.in_window(meals, date(2024, 3, 10), 7)
        self.assertEqual([m.date for m in week][0], "2024-03-10")
        self.assertEqual([m.date for m in week][-1], "2024-03-16")
        self.assertEqual(len(week), 7)

    def test_month_is_one_based(self) -> None:
        meals = [_meal("1", "2024-02-29"), _meal("2", "2024-03-01"), _meal("3", "2023-03-05")]
        self.assertEqual([m.id for m in aggregates.in_month(meals, 2024, 3)], ["2"])


class TestSeries(unittest.TestCase):
    def test_weekly_series_always_has_seven_days(self) -> None:
        meals = [_meal("1", "2024-03-15", 250), _meal("2", "2024-03-15", 150), _meal("3", "2024-03-01")]
        series = aggregates.daily_series(
            meals,
            today=TODAY,
            reducer=lambda day: {"calories": aggregates.total(day, "calories")},
        )
        self.assertEqual(len(series), 7)
        self.assertEqual(series[0].date, "2024-03-09")
        self.assertEqual(series[-1].date, "2024-03-15")
        self.assertEqual([b.day for b in series], ["Sat", "Sun", "Mon", "Tue", "Wed", "Thu", "Fri"])
        self.assertEqual(series[-1].values["calories"], 400)
        self.assertEqual(sum(b.values["calories"] for b in series[:-1]), 0)

    def test_series_with_no_records(self) -> None:
        series = aggregates.daily_series([], today=TODAY, days=30, reducer=lambda day: {"n": float(len(day))})
        self.assertEqual(len(series), 30)

    def test_average_of_nothing_is_zero(self) -> None:
        self.assertEqual(aggregates.average([]), 0.0)
        self.assertEqual(aggregates.average([1, 2, 2]), 1.7)

    def test_totals(self) -> None:
        meals = [_meal("1", "2024-03-15", 100), _meal("2", "2024-03-15", 50.5)]
        self.assertEqual(aggregates.totals(meals, ("calories", "protein")), {"calories": 150.5, "protein": 0.0})


class TestStreak(unittest.TestCase):
    def test_consecutive_days_ending_today(self) -> None:
        entries = [_entry("1", "2024-03-15"), _entry("2", "2024-03-14"), _entry("3", "2024-03-13")]
        self.assertEqual(aggregates.streak(entries, today=TODAY), 3)

    def test_gap_ends_streak(self) -> None:
        entries = [_entry("1", "2024-03-15"), _entry("2", "2024-03-13")]
        self.assertEqual(aggregates.streak(entries, today=TODAY), 1)

    def test_nothing_today_means_zero(self) -> None:
        entries = [_entry("1", "2024-03-14"), _entry("2", "2024-03-13")]
        self.assertEqual(aggregates.streak(entries, today=TODAY), 0)

    def test_same_day_counted_once_and_future_ignored(self) -> None:
        entries = [
            _entry("1", "2024-03-15"),
            _entry("2", "2024-03-15"),
            _entry("3", "2024-03-14"),
            _entry("4", "2024-03-20"),
        ]
        self.assertEqual(aggregates.streak(entries, today=TODAY), 2)

    def test_empty(self) -> None:
        self.assertEqual(aggregates.streak([], today=TODAY), 0)


class TestRerank(unittest.TestCase):
    def _board(self):
        return [
            LeaderboardUser(id="a", timestamp=0, name="A", points=100, rank=1),
            LeaderboardUser(id="b", timestamp=0, name="B", points=90, rank=2),
            LeaderboardUser(id="c", timestamp=0, name="C", points=80, rank=3),
        ]

    def test_update_moves_user_and_reassigns_ranks(self) -> None:
        ranked = aggregates.rerank(self._board(), "B", 150)
        self.assertEqual([(u.name, u.rank, u.points) for u in ranked], [("B", 1, 150), ("A", 2, 100), ("C", 3, 80)])

    def test_ties_keep_previous_order(self) -> None:
        ranked = aggregates.rerank(self._board(), "C", 100)
        self.assertEqual([u.name for u in ranked], ["A", "C", "B"])
        self.assertEqual([u.rank for u in ranked], [1, 2, 3])

    def test_input_is_not_mutated(self) -> None:
        board = self._board()
        aggregates.rerank(board, "C", 500)
        self.assertEqual(board[2].points, 80)
        self.assertEqual(board[2].rank, 3)

    def test_unknown_user(self) -> None:
        with self.assertRaises(KeyError):
            aggregates.rerank(self._board(), "Z", 1)


if __name__ == "__main__":
    unittest.main()
