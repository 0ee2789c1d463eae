from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from prompts import CATEGORY_NAMES

Priority = Literal["high", "medium", "low"]
PRIORITIES: tuple[str, ...] = ("high", "medium", "low")


class Period(str, Enum):
    TODAY = "today"
    WEEK = "week"


class Category(BaseModel):
    id: int
    name: str


class Todo(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    category_id: Optional[int] = None
    category: Optional[Category] = None  # joined from categories
    is_completed: bool = False
    completed_at: Optional[datetime] = None  # set iff is_completed
    created_at: datetime
    updated_at: Optional[datetime] = None


class TodoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    category_id: Optional[int] = None


SortKey = Literal["priority", "due_date", "created_at"]
SortDirection = Literal["asc", "desc"]


class TodoFilters(BaseModel):
    search: Optional[str] = None
    priority: Optional[Priority] = None
    category_id: Optional[int] = None
    is_completed: Optional[bool] = None


class TodoUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    category_id: Optional[int] = None
    is_completed: Optional[bool] = None


# Schemas handed to the structured-extraction service. Field descriptions are
# part of the prompt the model sees.

class ParsedTodoSchema(BaseModel):
    title: str = Field(min_length=1, max_length=120, description="할일의 제목 (120자 이내)")
    description: Optional[str] = Field(
        default=None, max_length=2000,
        description="할일에 대한 상세 설명 (선택 사항, 2000자 이내)",
    )
    due_date: Optional[str] = Field(
        default=None,
        description="할일의 마감 날짜 및 시간 (ISO 8601 형식, 예: 2024-01-16T15:00:00Z). "
                    "시간이 명시되지 않은 경우 09:00로 설정.",
    )
    priority: Optional[Priority] = Field(
        default=None,
        description="할일의 우선순위 (high, medium, low 중 하나). 문맥을 기반으로 자동 판단.",
    )
    category: Literal[CATEGORY_NAMES] = Field(
        description="할일의 카테고리. 반드시 " + ", ".join(f'"{name}"' for name in CATEGORY_NAMES)
                    + " 중 하나로 분류해야 합니다.",
    )


class TodoSummary(BaseModel):
    summary: str = Field(description="할일 목록의 전체 요약 (완료율, 총 개수 등 포함)")
    urgentTasks: list[str] = Field(description="긴급하거나 중요한 할일 목록 (최대 5개)")
    insights: list[str] = Field(description="할일 패턴이나 특징에 대한 인사이트 (최대 5개)")
    recommendations: list[str] = Field(description="사용자에게 도움이 되는 실행 가능한 추천 사항 (최대 5개)")


class ParsedTodo(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None  # ISO 8601
    priority: Priority = "medium"
    category: str


# Aggregate statistics fed into the summary prompt

class CompletionStats(BaseModel):
    total: int = 0
    completed: int = 0
    completion_rate: int = 0


class TimeDistribution(BaseModel):
    morning: int = 0    # 06:00-12:00
    afternoon: int = 0  # 12:00-18:00
    evening: int = 0    # 18:00-24:00
    night: int = 0      # 00:00-06:00


class AnalysisData(BaseModel):
    total_todos: int
    completed_todos: int
    completion_rate: int
    priority_stats: dict[str, CompletionStats]
    priority_distribution: dict[str, int]
    overdue_tasks: int
    due_today_tasks: int
    due_tomorrow_tasks: int
    on_time_rate: int
    time_distribution: TimeDistribution
    category_stats: dict[str, CompletionStats]
    most_productive_time: tuple[str, int]
    urgent_tasks: list[str]
