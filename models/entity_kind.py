"""
models/entity_kind.py
---------------------
The closed set of tracked entity kinds.

Every kind maps explicitly to its table, its public identifier column,
its writable columns and the shapes of its JSONB columns. Nothing here is
derived from table names at runtime: `stress_logs` is keyed by `log_id`
and `career_tasks` by `task_id`, which no pluralization rule would guess.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from db.errors import UnknownEntityKindError
from models.json_fields import JsonShape

OWNER_COLUMN = "user_id"


@dataclass(frozen=True)
class EntitySpec:
    """
    Storage layout of one entity kind.

    Attributes:
        table: Table name.
        id_column: Column holding the public identifier.
        columns: Columns a caller may supply on create.
        json_columns: Shape of each JSONB column.
        date_column: Column used by owner/date lookups, if the kind has one.
    """
    table: str
    id_column: str
    columns: tuple[str, ...]
    json_columns: dict[str, JsonShape] = field(default_factory=dict)
    date_column: Optional[str] = None

    @property
    def updatable_columns(self) -> frozenset[str]:
        """Columns an update may change: everything but the keys."""
        return frozenset(self.columns) - {self.id_column, OWNER_COLUMN}


_REFLECTION_SECTIONS = (
    "goals_data", "habits_data", "tasks_data", "stress_data",
    "finance_data", "hobbies_data", "overall_data",
)


class EntityKind(Enum):
    """Tracked record types. The value is the table name."""
    USER = "users"
    GOAL = "goals"
    HABIT = "habits"
    TASK = "tasks"
    STRESS_LOG = "stress_logs"
    MOOD_ENTRY = "mood_entries"
    FOCUS_SESSION = "focus_sessions"
    EXPENSE = "expenses"
    HOBBY_POST = "hobby_posts"
    WEEKLY_REFLECTION = "weekly_reflections"
    CAREER_TASK = "career_tasks"

    @property
    def spec(self) -> EntitySpec:
        return ENTITY_SPECS[self]

    @property
    def table(self) -> str:
        return self.value


ENTITY_SPECS: dict[EntityKind, EntitySpec] = {
    EntityKind.USER: EntitySpec(
        table="users",
        id_column="user_id",
        columns=(
            "user_id", "email", "name", "degree", "year", "subjects",
            "energy_preference", "career_interests",
            "financial_stress_level", "hobbies",
        ),
        json_columns={
            "subjects": JsonShape.STRING_LIST,
            "career_interests": JsonShape.STRING_LIST,
            "hobbies": JsonShape.STRING_LIST,
        },
    ),
    EntityKind.GOAL: EntitySpec(
        table="goals",
        id_column="goal_id",
        columns=("goal_id", "user_id", "title", "description", "category", "status"),
    ),
    EntityKind.HABIT: EntitySpec(
        table="habits",
        id_column="habit_id",
        columns=(
            "habit_id", "user_id", "name", "category", "description",
            "frequency", "completed_dates",
        ),
        json_columns={"completed_dates": JsonShape.DATE_LIST},
    ),
    EntityKind.TASK: EntitySpec(
        table="tasks",
        id_column="task_id",
        columns=(
            "task_id", "user_id", "title", "description", "completed",
            "due_date", "linked_goal_id", "linked_habit_id", "priority",
        ),
        date_column="due_date",
    ),
    EntityKind.STRESS_LOG: EntitySpec(
        table="stress_logs",
        id_column="log_id",
        columns=(
            "log_id", "user_id", "date", "mood", "fatigue",
            "study_duration", "stress_factors", "notes",
        ),
        json_columns={"stress_factors": JsonShape.STRING_LIST},
        date_column="date",
    ),
    EntityKind.MOOD_ENTRY: EntitySpec(
        table="mood_entries",
        id_column="entry_id",
        columns=("entry_id", "user_id", "date", "mood", "energy", "emotions", "note"),
        json_columns={"emotions": JsonShape.STRING_LIST},
        date_column="date",
    ),
    EntityKind.FOCUS_SESSION: EntitySpec(
        table="focus_sessions",
        id_column="session_id",
        columns=(
            "session_id", "user_id", "duration", "type",
            "start_time", "end_time", "completed",
        ),
    ),
    EntityKind.EXPENSE: EntitySpec(
        table="expenses",
        id_column="expense_id",
        columns=(
            "expense_id", "user_id", "amount", "category",
            "description", "expense_date",
        ),
        date_column="expense_date",
    ),
    EntityKind.HOBBY_POST: EntitySpec(
        table="hobby_posts",
        id_column="post_id",
        columns=(
            "post_id", "user_id", "user_name", "title", "content",
            "type", "file_url",
        ),
    ),
    EntityKind.WEEKLY_REFLECTION: EntitySpec(
        table="weekly_reflections",
        id_column="reflection_id",
        columns=("reflection_id", "user_id", "week_start_date") + _REFLECTION_SECTIONS,
        json_columns={name: JsonShape.MAPPING for name in _REFLECTION_SECTIONS},
        date_column="week_start_date",
    ),
    EntityKind.CAREER_TASK: EntitySpec(
        table="career_tasks",
        id_column="task_id",
        columns=(
            "task_id", "user_id", "title", "description",
            "estimated_time", "completed", "category",
        ),
    ),
}


def resolve_kind(kind: "EntityKind | str") -> EntityKind:
    """
    Accept an EntityKind or its table name and return the EntityKind.

    Raises:
        UnknownEntityKindError: For anything outside the known tables.
    """
    if isinstance(kind, EntityKind):
        return kind
    try:
        return EntityKind(kind)
    except ValueError:
        raise UnknownEntityKindError(f"Unknown entity kind: {kind!r}") from None
