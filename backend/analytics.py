"""
Task statistics for the AI summary.

All calendar comparisons happen in the timezone of the ``now`` passed in;
naive timestamps are taken to already be in that timezone.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable

from models import (
    PRIORITIES,
    AnalysisData,
    CompletionStats,
    Period,
    TimeDistribution,
    Todo,
)
from prompts import UNCATEGORIZED_LABEL

URGENT_TASK_LIMIT = 5


def completion_rate(completed: int, total: int) -> int:
    """Integer percentage rounded half-up; 0 when there is nothing to divide."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def _local(moment: datetime, now: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=now.tzinfo)
    return moment.astimezone(now.tzinfo)


def _local_day(moment: datetime, now: datetime) -> date:
    return _local(moment, now).date()


def week_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Sunday 00:00 and Saturday 00:00 of the current week, both inclusive.

    Todos due later on Saturday fall outside the week.
    """
    today = start_of_day(now)
    # weekday(): Monday=0 ... Sunday=6
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    end = start + timedelta(days=6)
    return start, end


def filter_todos_by_period(todos: Iterable[Todo], period: Period, now: datetime) -> list[Todo]:
    """Keep the todos due within the period. Todos without a due date never match."""
    period = Period(period)
    dated = [todo for todo in todos if todo.due_date is not None]

    if period is Period.TODAY:
        today = now.date()
        return [todo for todo in dated if _local_day(todo.due_date, now) == today]

    start, end = week_bounds(now)
    return [todo for todo in dated if start <= _local(todo.due_date, now) <= end]


def _time_bucket(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 24:
        return "evening"
    return "night"


def _is_on_time(todo: Todo, now: datetime) -> bool:
    finished_at = todo.completed_at or todo.updated_at
    if finished_at is None:
        return False
    return _local(finished_at, now) <= _local(todo.due_date, now)


def _stats_for(todos: list[Todo]) -> CompletionStats:
    completed = sum(1 for todo in todos if todo.is_completed)
    return CompletionStats(
        total=len(todos),
        completed=completed,
        completion_rate=completion_rate(completed, len(todos)),
    )


def generate_analysis_data(todos: Iterable[Todo], now: datetime) -> AnalysisData:
    """Compute the statistics the summary prompt is built from.

    Overdue compares full timestamps against the start of today, while
    due-today/due-tomorrow compare calendar days. On-time compares the
    completion timestamp (falling back to updated_at) with the due timestamp.
    """
    todos = list(todos)
    today_start = start_of_day(now)
    today = today_start.date()
    tomorrow = today + timedelta(days=1)

    overall = _stats_for(todos)

    priority_stats = {
        priority: _stats_for([todo for todo in todos if todo.priority == priority])
        for priority in PRIORITIES
    }

    pending_dated = [todo for todo in todos if todo.due_date is not None and not todo.is_completed]
    overdue = [todo for todo in pending_dated if _local(todo.due_date, now) < today_start]
    due_today = [todo for todo in pending_dated if _local_day(todo.due_date, now) == today]
    due_tomorrow = [todo for todo in pending_dated if _local_day(todo.due_date, now) == tomorrow]

    completed_dated = [todo for todo in todos if todo.due_date is not None and todo.is_completed]
    on_time = sum(1 for todo in completed_dated if _is_on_time(todo, now))

    distribution = TimeDistribution()
    for todo in todos:
        if todo.due_date is not None:
            bucket = _time_bucket(_local(todo.due_date, now).hour)
            setattr(distribution, bucket, getattr(distribution, bucket) + 1)

    by_category: dict[str, list[Todo]] = {}
    for todo in todos:
        name = todo.category.name if todo.category else UNCATEGORIZED_LABEL
        by_category.setdefault(name, []).append(todo)
    category_stats = {name: _stats_for(group) for name, group in by_category.items()}

    return AnalysisData(
        total_todos=overall.total,
        completed_todos=overall.completed,
        completion_rate=overall.completion_rate,
        priority_stats=priority_stats,
        priority_distribution={priority: stats.total for priority, stats in priority_stats.items()},
        overdue_tasks=len(overdue),
        due_today_tasks=len(due_today),
        due_tomorrow_tasks=len(due_tomorrow),
        on_time_rate=completion_rate(on_time, len(completed_dated)),
        time_distribution=distribution,
        category_stats=category_stats,
        most_productive_time=most_productive_time(distribution),
        urgent_tasks=[todo.title for todo in (overdue + due_today)[:URGENT_TASK_LIMIT]],
    )


def most_productive_time(distribution: TimeDistribution) -> tuple[str, int]:
    """Most populated bucket; ties go to the earlier bucket in field order."""
    return max(distribution.model_dump().items(), key=lambda item: item[1])
