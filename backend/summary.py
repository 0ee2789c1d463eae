"""
AI summary of a user's todos for a reporting period.
"""
import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from analytics import filter_todos_by_period, generate_analysis_data
from errors import InputValidationError
from extraction import StructuredExtractor
from models import PRIORITIES, AnalysisData, Period, Todo, TodoSummary
from prompts import (
    EMPTY_INSIGHT,
    EMPTY_PERIOD_SUMMARY,
    EMPTY_RECOMMENDATION,
    PERIOD_FOCUS,
    PERIOD_LABELS,
    PRIORITY_LABELS,
    SUMMARY_PROMPT,
    TIME_BUCKET_LABELS,
)

logger = logging.getLogger(__name__)


def validate_period(period: Any) -> Period:
    try:
        return Period(period)
    except ValueError:
        raise InputValidationError('분석 기간은 "today" 또는 "week"이어야 합니다.')


def empty_summary(period: Period) -> TodoSummary:
    """Canned narrative for a period with nothing due."""
    return TodoSummary(
        summary=EMPTY_PERIOD_SUMMARY[period.value],
        urgentTasks=[],
        insights=[EMPTY_INSIGHT],
        recommendations=[EMPTY_RECOMMENDATION],
    )


def build_summary_prompt(analysis: AnalysisData, period: Period) -> str:
    priority_lines = "\n".join(
        f"- {PRIORITY_LABELS[priority]}: {analysis.priority_stats[priority].total}개 "
        f"(완료: {analysis.priority_stats[priority].completed}개, "
        f"완료율: {analysis.priority_stats[priority].completion_rate}%)"
        for priority in PRIORITIES
    )
    time_lines = "\n".join(
        f"- {TIME_BUCKET_LABELS[bucket]}: {count}개"
        for bucket, count in analysis.time_distribution.model_dump().items()
    )
    category_lines = "\n".join(
        f"- {name}: {stats.total}개 (완료: {stats.completed}개, 완료율: {stats.completion_rate}%)"
        for name, stats in analysis.category_stats.items()
    )
    urgent_lines = "\n".join(f"- {title}" for title in analysis.urgent_tasks)

    bucket, count = analysis.most_productive_time
    most_productive = f"{bucket} ({count}개)"

    return SUMMARY_PROMPT.format(
        period_label=PERIOD_LABELS[period.value],
        total_todos=analysis.total_todos,
        completed_todos=analysis.completed_todos,
        completion_rate=analysis.completion_rate,
        priority_lines=priority_lines,
        overdue_tasks=analysis.overdue_tasks,
        due_today_tasks=analysis.due_today_tasks,
        due_tomorrow_tasks=analysis.due_tomorrow_tasks,
        on_time_rate=analysis.on_time_rate,
        time_lines=time_lines,
        most_productive_time=most_productive,
        category_lines=category_lines,
        urgent_lines=urgent_lines,
        period_focus=PERIOD_FOCUS[period.value],
    )


async def summarize_todos(
    todos: Iterable[Todo],
    period: Period,
    extractor: StructuredExtractor,
    now: datetime,
) -> tuple[TodoSummary, Optional[AnalysisData]]:
    """Summarise the todos due in period.

    Returns the narrative and the statistics behind it; statistics are None
    when nothing was due and the canned narrative was used instead.
    """
    filtered = filter_todos_by_period(todos, period, now)
    if not filtered:
        logger.info("No todos due for period %s; returning empty summary", period.value)
        return empty_summary(period), None

    analysis = generate_analysis_data(filtered, now)
    raw = await extractor.extract(build_summary_prompt(analysis, period), TodoSummary)
    return TodoSummary.model_validate(raw), analysis
