"""Comparison of daily totals with nutrient goals."""

from typing import Protocol
from uuid import UUID

from nutrilog.domain.goals import DailyGoals, GoalStatus, NutrientComparison
from nutrilog.domain.logs import AggregateTotals
from nutrilog.domain.nutrition import round_half_up

ON_TARGET = "on-target"
NEAR_TARGET = "near-target"
OFF_TARGET = "off-target"

GOAL_NUTRIENTS = ("calories", "protein", "carbs", "fat", "fiber", "water")


class GoalsRepository(Protocol):
    """Source of a user's daily goals."""

    def get_daily_goals(self, user_id: UUID) -> DailyGoals:
        """Return the user's goals, or defaults when none are stored."""


def goal_percentage(actual: float, goal: float) -> int:
    """Percentage of the goal reached, rounded to a whole number."""
    if goal == 0:
        return 0
    return int(round_half_up(actual / goal * 100))


def classify(percentage: int) -> str:
    if 95 <= percentage <= 105:
        return ON_TARGET
    if 85 <= percentage <= 115:
        return NEAR_TARGET
    return OFF_TARGET


def goal_status(actual: float, goal: float) -> GoalStatus:
    percentage = goal_percentage(actual, goal)
    return GoalStatus(percentage=percentage, classification=classify(percentage))


def is_over_goal(nutrient: str, actual: float, goal: float | None) -> bool:
    """Whether a value is emphasised as over goal. Water never is."""
    if nutrient == "water" or goal is None:
        return False
    return actual > goal


def progress_fraction(actual: float, goal: float | None) -> float:
    """Width of a progress bar, capped at a full bar."""
    if not goal:
        return 0.0
    return min(actual / goal, 1.0)


def compare_day(totals: AggregateTotals, goals: DailyGoals) -> list[NutrientComparison]:
    """Compare each goal nutrient; water uses the directly entered intake."""
    comparisons = []
    for nutrient in GOAL_NUTRIENTS:
        if nutrient == "water":
            actual = totals.water_intake
        else:
            actual = getattr(totals.nutrients, nutrient)
        goal = getattr(goals, nutrient)
        comparisons.append(
            NutrientComparison(
                nutrient=nutrient,
                actual=actual,
                goal=goal,
                status=goal_status(actual, goal or 0),
                over_goal=is_over_goal(nutrient, actual, goal),
                progress=progress_fraction(actual, goal),
            )
        )
    return comparisons
