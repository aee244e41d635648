# -*- coding: utf-8 -*-
"""
Command-line access to the local wellness stores.

Usage:
    python -m wellness.cli water add|remove|show [--date YYYY-MM-DD]
    python -m wellness.cli meals add <name> <calories> [--meal-type lunch]
    python -m wellness.cli meals today
    python -m wellness.cli journal add <text...>
    python -m wellness.cli journal streak
    python -m wellness.cli mood add <mood> <stress> <energy>
    python -m wellness.cli mood trends
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Dict

from .config import settings
from .errors import InvalidRecordError
from .stores import JournalStore, JsonFileBackend, MealStore, MoodStore, StoreContext, WaterStore


def _context(args: argparse.Namespace) -> StoreContext:
    root = Path(args.store_dir) if args.store_dir else settings.client_store_dir
    return StoreContext.default(JsonFileBackend(root))


async def cmd_water(args: argparse.Namespace) -> int:
    async with WaterStore(_context(args)) as store:
        if args.action == "add":
            count = store.add_glass(args.date)
        elif args.action == "remove":
            count = store.remove_glass(args.date)
        else:
            count = store.glasses_for_date(args.date)
        print(f"Glasses ({args.date or 'today'}): {count}")
        print(f"Weekly average: {store.weekly_average()}")
    return 0


async def cmd_meals(args: argparse.Namespace) -> int:
    async with MealStore(_context(args)) as store:
        if args.action == "add":
            meal = store.add_meal({"name": args.name, "calories": args.calories, "meal_type": args.meal_type})
            print(f"Logged {meal.name} ({meal.calories:g} kcal)")
        for meal in store.meals_for_today():
            print(f"  [{meal.meal_type}] {meal.name}: {meal.calories:g} kcal")
        macros = store.total_macros()
        print(
            f"Today: {store.total_calories():g} kcal, protein {macros.protein:g} g, "
            f"carbs {macros.carbs:g} g, fat {macros.fat:g} g"
        )
    return 0


async def cmd_journal(args: argparse.Namespace) -> int:
    async with JournalStore(_context(args)) as store:
        if args.action == "add":
            store.add_journal_entry({"content": " ".join(args.content)})
            print(f"Saved. {store.total_entries()} entries in total.")
        print(f"Journal streak: {store.streak()} day(s)")
    return 0


async def cmd_mood(args: argparse.Namespace) -> int:
    async with MoodStore(_context(args)) as store:
        if args.action == "add":
            store.add_mood_entry(
                {"mood": args.mood, "stress_level": args.stress, "energy_level": args.energy}
            )
            print(f"Average mood: {store.average_mood()}")
            return 0
        for trend in store.mood_trends():
            print(f"{trend.date} {trend.day}: mood {trend.mood} stress {trend.stress} energy {trend.energy}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Wellness tracker CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--store-dir",
        help="Directory of the local store (default: $WELLNESS_CLIENT_STORE_DIR or data/client)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    water_parser = subparsers.add_parser("water", help="Water intake")
    water_parser.add_argument("action", choices=["add", "remove", "show"])
    water_parser.add_argument("--date", help="Day to change (default: today)")

    meals_parser = subparsers.add_parser("meals", help="Logged meals")
    meals_sub = meals_parser.add_subparsers(dest="action", required=True)
    meals_add = meals_sub.add_parser("add", help="Log a meal")
    meals_add.add_argument("name")
    meals_add.add_argument("calories", type=float)
    meals_add.add_argument(
        "--meal-type",
        default="snacks",
        choices=["breakfast", "lunch", "dinner", "snacks"],
    )
    meals_sub.add_parser("today", help="Show today's meals")

    journal_parser = subparsers.add_parser("journal", help="Journal entries")
    journal_sub = journal_parser.add_subparsers(dest="action", required=True)
    journal_add = journal_sub.add_parser("add", help="Write an entry")
    journal_add.add_argument("content", nargs="+")
    journal_sub.add_parser("streak", help="Show the writing streak")

    mood_parser = subparsers.add_parser("mood", help="Mood check-ins")
    mood_sub = mood_parser.add_subparsers(dest="action", required=True)
    mood_add = mood_sub.add_parser("add", help="Record a check-in")
    mood_add.add_argument("mood", type=int)
    mood_add.add_argument("stress", type=int)
    mood_add.add_argument("energy", type=int)
    mood_sub.add_parser("trends", help="Show the 7-day trend")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return 1

    commands: Dict[str, Callable[[argparse.Namespace], Awaitable[int]]] = {
        "water": cmd_water,
        "meals": cmd_meals,
        "journal": cmd_journal,
        "mood": cmd_mood,
    }

    try:
        return asyncio.run(commands[args.command](args))
    except InvalidRecordError as exc:
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
