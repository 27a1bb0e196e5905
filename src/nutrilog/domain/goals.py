"""Goal domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DailyGoals:
    """Daily nutrient targets. Water is in fluid ounces."""

    calories: float = 2000
    protein: float = 100
    carbs: float = 225
    fat: float = 65
    fiber: float = 28
    water: float = 80


@dataclass(frozen=True)
class GoalStatus:
    """Percentage of goal reached and its band."""

    percentage: int
    classification: str


@dataclass(frozen=True)
class NutrientComparison:
    """Everything the UI needs to render one nutrient against its goal."""

    nutrient: str
    actual: float
    goal: float | None
    status: GoalStatus
    over_goal: bool
    progress: float
