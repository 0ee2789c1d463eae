"""
Natural-language todo parsing.

Free text is validated and normalised, turned into a prompt anchored on the
current date in KST, sent to the structured-extraction service, and the
returned object is clamped into a ParsedTodo.
"""
import logging
import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from analytics import start_of_day
from errors import InputValidationError
from extraction import StructuredExtractor
from models import PRIORITIES, ParsedTodo, ParsedTodoSchema
from prompts import (
    CATEGORY_KEYWORDS,
    CATEGORY_NAMES,
    DEFAULT_CATEGORY,
    DEFAULT_HOUR,
    DEFAULT_TITLE,
    PARSE_PROMPT,
    PRIORITY_KEYWORDS,
    TIME_OF_DAY_HOURS,
)

logger = logging.getLogger(__name__)

KST = timezone(timedelta(hours=9))

MIN_TEXT_LENGTH = 2
MAX_TEXT_LENGTH = 500
MAX_TITLE_LENGTH = 120
MAX_DESCRIPTION_LENGTH = 2000
ELLIPSIS = "..."

MONDAY, FRIDAY = 0, 4
WEEKDAY_NAMES = ("월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일")

_WHITESPACE_RUN = re.compile(r"\s+")
_MEANINGFUL_CHAR = re.compile(r"[가-힣a-zA-Z0-9]")


def _text_length(text: str) -> int:
    """Length in UTF-16 code units, so astral characters such as emoji count twice."""
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


def validate_and_preprocess_input(text: Any) -> str:
    """Check the raw text and return it trimmed, whitespace-collapsed and NFC-normalised."""
    if not text or not isinstance(text, str):
        raise InputValidationError("유효한 텍스트를 제공해야 합니다.")
    if _text_length(text) < MIN_TEXT_LENGTH:
        raise InputValidationError(f"입력 텍스트는 최소 {MIN_TEXT_LENGTH}자 이상이어야 합니다.")
    if _text_length(text) > MAX_TEXT_LENGTH:
        raise InputValidationError(f"입력 텍스트는 최대 {MAX_TEXT_LENGTH}자까지 입력 가능합니다.")

    processed = unicodedata.normalize("NFC", _WHITESPACE_RUN.sub(" ", text.strip()))

    if not _MEANINGFUL_CHAR.search(processed):
        raise InputValidationError("한글, 영문, 숫자가 포함된 유효한 내용을 입력해주세요.")
    if _text_length(processed) < MIN_TEXT_LENGTH:
        raise InputValidationError("전처리 후 텍스트가 너무 짧습니다.")

    return processed


def next_weekday(from_date: date, target_weekday: int, allow_today: bool = False) -> date:
    """Next date falling on target_weekday (Monday=0).

    When from_date already is that weekday the result is a week later,
    unless allow_today is set.
    """
    days_ahead = (target_weekday - from_date.weekday()) % 7
    if days_ahead == 0 and not allow_today:
        days_ahead = 7
    return from_date + timedelta(days=days_ahead)


@dataclass(frozen=True)
class DateAnchors:
    today: date
    tomorrow: date
    day_after_tomorrow: date
    this_friday: date
    next_monday: date
    weekday: str


def compute_date_anchors(now: datetime) -> DateAnchors:
    """Relative-date anchors for the prompt, computed on the KST calendar."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(KST).date()
    anchors = DateAnchors(
        today=today,
        tomorrow=today + timedelta(days=1),
        day_after_tomorrow=today + timedelta(days=2),
        this_friday=next_weekday(today, FRIDAY),
        next_monday=next_weekday(today, MONDAY),
        weekday=WEEKDAY_NAMES[today.weekday()],
    )
    logger.debug("Date anchors for %s: %s", now.isoformat(), anchors)
    return anchors


def _bullet_keywords(table: dict[str, tuple[str, ...]]) -> str:
    return "\n".join(
        f'- "{label}": ' + ", ".join(f'"{keyword}"' for keyword in keywords)
        for label, keywords in table.items()
    )


def build_parse_prompt(text: str, anchors: DateAnchors) -> str:
    time_rules = "\n".join(f'- "{word}" → {hour:02d}:00' for word, hour in TIME_OF_DAY_HOURS.items())
    priority_rules = "\n".join(
        f"- {priority}: " + ", ".join(f'"{keyword}"' for keyword in keywords)
        + (", 키워드 없음" if priority == "medium" else "")
        for priority, keywords in PRIORITY_KEYWORDS.items()
    )
    return PARSE_PROMPT.format(
        text=text,
        today=anchors.today.isoformat(),
        weekday=anchors.weekday,
        tomorrow=anchors.tomorrow.isoformat(),
        day_after_tomorrow=anchors.day_after_tomorrow.isoformat(),
        this_friday=anchors.this_friday.isoformat(),
        next_monday=anchors.next_monday.isoformat(),
        default_time=f"{DEFAULT_HOUR:02d}:00:00.000Z",
        default_hour=DEFAULT_HOUR,
        time_rules=time_rules,
        priority_rules=priority_rules,
        category_rules=_bullet_keywords(CATEGORY_KEYWORDS),
        category_list=", ".join(f'"{name}"' for name in CATEGORY_NAMES),
        category_count=len(CATEGORY_NAMES),
    )


def parse_timestamp(value: str, default_tz=timezone.utc) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp (``Z`` suffix allowed); None if unparseable."""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def format_timestamp(moment: datetime) -> str:
    """UTC ISO 8601 with milliseconds and a ``Z`` suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _truncate(value: str, limit: int) -> str:
    if len(value) > limit:
        return value[:limit - len(ELLIPSIS)] + ELLIPSIS
    return value


def postprocess_response(data: dict[str, Any], now: datetime) -> ParsedTodo:
    """Clamp and default the extracted object."""
    title = data.get("title")
    if not isinstance(title, str) or not title:
        title = DEFAULT_TITLE
    title = _truncate(title, MAX_TITLE_LENGTH)

    due_date = data.get("due_date")
    if due_date:
        due = parse_timestamp(due_date, default_tz=now.tzinfo or timezone.utc)
        if due is None:
            logger.warning("Discarding unparseable due_date from model: %r", due_date)
            due_date = None
        else:
            today_start = start_of_day(now)
            if due < today_start:
                due_date = format_timestamp(today_start)
    else:
        due_date = None

    priority = data.get("priority")
    if priority not in PRIORITIES:
        priority = "medium"

    category = data.get("category")
    if category not in CATEGORY_NAMES:
        category = DEFAULT_CATEGORY

    description = data.get("description")
    if isinstance(description, str):
        description = _truncate(description, MAX_DESCRIPTION_LENGTH)
    else:
        description = None

    return ParsedTodo(
        title=title,
        description=description,
        due_date=due_date,
        priority=priority,
        category=category,
    )


async def parse_todo_text(text: Any, extractor: StructuredExtractor, now: datetime) -> tuple[str, ParsedTodo]:
    """Validate text, ask the model for a structured todo and clamp the result.

    Returns the normalised input alongside the parsed todo.
    """
    processed = validate_and_preprocess_input(text)
    prompt = build_parse_prompt(processed, compute_date_anchors(now))
    raw = await extractor.extract(prompt, ParsedTodoSchema)
    return processed, postprocess_response(raw, now)
