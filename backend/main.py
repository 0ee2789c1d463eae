from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import Any, Optional
import json
import logging
import sqlite3
import sys
import time
import uuid

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials

import config
from auth import User, bearer_scheme, resolve_user
from database import (
    init_db,
    get_categories,
    get_category,
    get_todos_for_user,
    create_todo_db,
    update_todo_db,
    delete_todo_db,
)
from errors import (
    AppError,
    AuthenticationError,
    ConfigurationError,
    InputValidationError,
    NotFoundError,
    StoreError,
)
from extraction import (
    AnthropicExtractor,
    ExtractionAuthError,
    ExtractionError,
    ExtractionNetworkError,
    ExtractionRateLimitError,
    ExtractionTimeoutError,
    StructuredExtractor,
)
from models import (
    Category,
    SortDirection,
    SortKey,
    Priority,
    Todo,
    TodoCreate,
    TodoFilters,
    TodoUpdate,
)
from summary import summarize_todos, validate_period
from todo_parser import format_timestamp, parse_todo_text

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API 키가 설정되지 않았습니다. 환경 변수 ANTHROPIC_API_KEY를 확인해주세요."
INVALID_JSON_MESSAGE = "잘못된 JSON 형식입니다. 올바른 형식으로 요청해주세요."
AUTH_FAILED_MESSAGE = "AI 서비스 API 키가 누락되었거나 잘못되었습니다."
AUTH_FAILED_HINT = " 환경 변수 ANTHROPIC_API_KEY를 확인해주세요."
NETWORK_MESSAGE = "AI 서비스에 연결할 수 없습니다. 잠시 후 다시 시도해주세요."
RATE_LIMIT_MESSAGE = "AI 서비스 사용량이 초과되었습니다. 잠시 후 다시 시도해주세요."
TIMEOUT_MESSAGE = "AI 처리 시간이 초과되었습니다. 더 간단한 문장으로 다시 시도해주세요."
PARSE_FAILURE_MESSAGE = "AI 처리 중 오류가 발생했습니다. 다시 시도해주세요."
SUMMARY_FAILURE_MESSAGE = "AI 분석 중 오류가 발생했습니다. 다시 시도해주세요."
STORE_FAILURE_MESSAGE = "할일 데이터를 가져오는 중 오류가 발생했습니다."
INVALID_REQUEST_MESSAGE = "요청 형식이 올바르지 않습니다."


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Startup
    init_db()
    yield
    # Shutdown (nothing to do)

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body and query validation failures use the same error envelope as AppError."""
    message = INVALID_REQUEST_MESSAGE
    errors = exc.errors()
    if errors:
        field = ".".join(str(part) for part in errors[0]["loc"] if part != "body")
        message = f"{message} ({field}: {errors[0]['msg']})"
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@lru_cache(maxsize=1)
def _extractor_for(api_key: Optional[str]) -> AnthropicExtractor:
    return AnthropicExtractor(api_key=api_key)


def get_extractor() -> StructuredExtractor:
    return _extractor_for(config.ANTHROPIC_API_KEY)


def get_now() -> datetime:
    return datetime.now(config.LOCAL_TIMEZONE)


def current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> User:
    return resolve_user(credentials)


async def _read_json(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InputValidationError(INVALID_JSON_MESSAGE)
    # Non-object bodies behave as if every field were missing
    return body if isinstance(body, dict) else {}


def _extraction_failure(
    error: ExtractionError,
    auth_message: str,
    default_message: str,
    timeout_status: bool = True,
) -> AppError:
    """Translate an extraction failure into the route's error response."""
    if isinstance(error, ExtractionAuthError):
        return AuthenticationError(auth_message)
    if isinstance(error, ExtractionNetworkError):
        return AppError(NETWORK_MESSAGE, 503)
    if isinstance(error, ExtractionRateLimitError):
        return AppError(RATE_LIMIT_MESSAGE, 429)
    if isinstance(error, ExtractionTimeoutError) and timeout_status:
        return AppError(TIMEOUT_MESSAGE, 408)
    return AppError(str(error) or default_message, 500)


@app.post("/api/ai-parse-todo")
async def ai_parse_todo(
    request: Request,
    extractor: StructuredExtractor = Depends(get_extractor),
    now: datetime = Depends(get_now),
) -> dict:
    """Turn free text into a todo suggestion for the create form."""
    if not config.api_key_configured():
        raise ConfigurationError(MISSING_KEY_MESSAGE)

    body = await _read_json(request)

    try:
        processed_text, parsed = await parse_todo_text(body.get("text"), extractor, now)
    except AppError:
        raise
    except ExtractionError as e:
        logger.error("AI todo parsing failed: %s: %s", type(e).__name__, e)
        raise _extraction_failure(e, AUTH_FAILED_MESSAGE + AUTH_FAILED_HINT, PARSE_FAILURE_MESSAGE)
    except Exception as e:
        logger.exception("AI todo parsing failed")
        raise AppError(str(e) or PARSE_FAILURE_MESSAGE)

    return {
        "success": True,
        "data": parsed.model_dump(exclude_none=True),
        "meta": {
            "processed_at": format_timestamp(now),
            "original_text": processed_text,
            "processing_time": int(time.time() * 1000),
        },
    }


@app.post("/api/ai-summary")
async def ai_summary(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    extractor: StructuredExtractor = Depends(get_extractor),
    now: datetime = Depends(get_now),
) -> dict:
    """Summarise the caller's todos for "today" or "week"."""
    if not config.api_key_configured():
        raise ConfigurationError(MISSING_KEY_MESSAGE)

    body = await _read_json(request)
    period = validate_period(body.get("period"))
    user = resolve_user(credentials)

    try:
        todos = get_todos_for_user(user.id)
    except sqlite3.Error:
        logger.exception("Failed to load todos for user %s", user.id)
        raise StoreError(STORE_FAILURE_MESSAGE)

    try:
        summary, analysis = await summarize_todos(todos, period, extractor, now)
    except ExtractionError as e:
        logger.error("AI todo summary failed: %s: %s", type(e).__name__, e)
        raise _extraction_failure(e, AUTH_FAILED_MESSAGE, SUMMARY_FAILURE_MESSAGE, timeout_status=False)
    except Exception as e:
        logger.exception("AI todo summary failed")
        raise AppError(str(e) or SUMMARY_FAILURE_MESSAGE)

    response = {"success": True, "data": summary.model_dump()}
    if analysis is not None:
        response["meta"] = {
            "period": period.value,
            "totalTodos": analysis.total_todos,
            "completedTodos": analysis.completed_todos,
            "completionRate": analysis.completion_rate,
            "analyzed_at": format_timestamp(now),
        }
    return response


@app.get("/categories")
def list_categories() -> list[Category]:
    return get_categories()


@app.get("/todos")
def list_todos(
    search: Optional[str] = None,
    priority: Optional[Priority] = None,
    category_id: Optional[int] = None,
    is_completed: Optional[bool] = None,
    sort: SortKey = "created_at",
    direction: SortDirection = "desc",
    user: User = Depends(current_user),
) -> list[Todo]:
    filters = TodoFilters(search=search, priority=priority, category_id=category_id, is_completed=is_completed)
    return get_todos_for_user(user.id, filters, sort, direction)


def _check_category(category_id: Optional[int]):
    if category_id is not None and get_category(category_id) is None:
        raise InputValidationError("존재하지 않는 카테고리입니다.")


@app.post("/todos")
def create_todo(todo_data: TodoCreate, user: User = Depends(current_user)) -> Todo:
    _check_category(todo_data.category_id)
    return create_todo_db(
        str(uuid.uuid4()),
        user.id,
        todo_data.title,
        todo_data.description,
        todo_data.due_date,
        todo_data.priority,
        todo_data.category_id,
    )


@app.patch("/todos/{todo_id}")
def update_todo(todo_id: str, todo_data: TodoUpdate, user: User = Depends(current_user)) -> Todo:
    updates = todo_data.model_dump(exclude_unset=True)
    # These columns are NOT NULL; an explicit null means "leave as is"
    for field in ("title", "priority", "is_completed"):
        if updates.get(field, "") is None:
            del updates[field]
    _check_category(updates.get("category_id"))

    result = update_todo_db(todo_id, user.id, **updates)
    if not result:
        raise NotFoundError("할일을 찾을 수 없습니다.")
    return result


@app.delete("/todos/{todo_id}")
def delete_todo(todo_id: str, user: User = Depends(current_user)) -> dict:
    if not delete_todo_db(todo_id, user.id):
        raise NotFoundError("할일을 찾을 수 없습니다.")
    return {"status": "deleted"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
