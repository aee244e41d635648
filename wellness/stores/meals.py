# -*- coding: utf-8 -*-
"""Meals — logged meals (synced) and the meal planner (local)."""

from __future__ import annotations

from datetime import date
from typing import Any, List, Mapping

from . import aggregates
from .engine import ScopedStore
from .models import DailyCalories, LoggedMeal, MacroTotals, PlannedMeal


class MealStore(ScopedStore[LoggedMeal]):
    domain = "loggedMeals"
    model = LoggedMeal
    remote_resource = "meals"

    def add_meal(self, meal: Mapping[str, Any]) -> LoggedMeal:
        return self.add(meal)

    def remove_meal(self, meal_id: str) -> LoggedMeal | None:
        return self.remove(meal_id)

    def meals_for_today(self) -> List[LoggedMeal]:
        return aggregates.today_only(self._records, self.today())

    def total_calories(self) -> float:
        return aggregates.total(self.meals_for_today(), "calories")

    def total_macros(self) -> MacroTotals:
        return MacroTotals(**aggregates.totals(self.meals_for_today(), ("protein", "carbs", "fat")))

    def all_meals(self) -> List[LoggedMeal]:
        return self.records

    def clear_meals(self) -> None:
        self.clear()

    def weekly_calories(self, days: int = 7) -> List[DailyCalories]:
        series = aggregates.daily_series(
            self._records,
            today=self.today(),
            days=days,
            reducer=lambda meals: {
                "calories": aggregates.total(meals, "calories"),
                "meals": float(len(meals)),
            },
        )
        return [
            DailyCalories(
                date=b.date,
                day=b.day,
                calories=round(b.values["calories"], 1),
                meals=int(b.values["meals"]),
            )
            for b in series
        ]


class MealPlannerStore(ScopedStore[PlannedMeal]):
    domain = "plannedMeals"
    model = PlannedMeal
    stamp_date = False

    def add_planned_meal(self, meal: Mapping[str, Any]) -> PlannedMeal:
        return self.add(meal)

    def remove_planned_meal(self, meal_id: str) -> PlannedMeal | None:
        return self.remove(meal_id)

    def meals_for_date(self, day: str | date) -> List[PlannedMeal]:
        target = day if isinstance(day, date) else aggregates.parse_day(day)
        return aggregates.on_day(self._records, target)

    def meals_for_week(self, start: str | date) -> List[PlannedMeal]:
        first = start if isinstance(start, date) else aggregates.parse_day(start)
        return aggregates.in_window(self._records, first, 7)

    def meals_for_month(self, year: int, month: int) -> List[PlannedMeal]:
        return aggregates.in_month(self._records, year, month)

    def upcoming(self, days: int = 7) -> List[PlannedMeal]:
        meals = aggregates.in_window(self._records, self.today(), days)
        return sorted(meals, key=lambda m: (m.date, m.timestamp))

    def clear_planned_meals(self) -> None:
        self.clear()

