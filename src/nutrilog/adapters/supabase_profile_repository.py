"""Supabase repository for user profile goals."""

from dataclasses import dataclass, fields
from uuid import UUID

from supabase import Client

from nutrilog.domain.goals import DailyGoals
from nutrilog.services.goals import GoalsRepository


@dataclass
class SupabaseProfileRepository(GoalsRepository):
    """Reads daily goals from ``user_profiles``."""

    client: Client

    def get_daily_goals(self, user_id: UUID) -> DailyGoals:
        response = (
            self.client.table("user_profiles")
            .select("daily_goals")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return DailyGoals()
        return parse_daily_goals(response.data[0].get("daily_goals"))


def parse_daily_goals(raw: object) -> DailyGoals:
    """Build goals from a JSON object, keeping defaults for missing keys."""
    if not isinstance(raw, dict):
        return DailyGoals()
    values = {}
    for goal_field in fields(DailyGoals):
        value = raw.get(goal_field.name)
        if value is None:
            continue
        try:
            values[goal_field.name] = float(value)
        except (TypeError, ValueError):
            continue
    return DailyGoals(**values)
