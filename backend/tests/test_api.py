"""
Tests for FastAPI endpoints in main.py.
The extraction service is replaced by FakeExtractor; the clock is pinned to FIXED_NOW.
"""
import pytest
import sqlite3
import sys
import os
from datetime import timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from database import create_todo_db, update_todo_db
from extraction import (
    ExtractionAuthError,
    ExtractionError,
    ExtractionNetworkError,
    ExtractionRateLimitError,
    ExtractionTimeoutError,
)
from conftest import FIXED_NOW

SUMMARY = {
    "summary": "좋은 하루를 보내고 있어요.",
    "urgentTasks": ["보고서 제출"],
    "insights": ["오전에 할일이 몰려 있어요."],
    "recommendations": ["가장 중요한 일부터 끝내세요."],
}


class TestParseEndpoint:
    """Tests for POST /api/ai-parse-todo."""

    def test_parse_success(self, app_client, fake_extractor):
        fake_extractor.result = {
            "title": "팀 회의 준비",
            "due_date": "2024-06-12T15:00:00.000Z",
            "priority": "high",
            "category": "업무",
        }

        response = app_client.post("/api/ai-parse-todo", json={"text": " 내일 오후 3시까지  중요한 팀 회의 준비하기"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {
            "title": "팀 회의 준비",
            "due_date": "2024-06-12T15:00:00.000Z",
            "priority": "high",
            "category": "업무",
        }
        assert body["meta"]["original_text"] == "내일 오후 3시까지 중요한 팀 회의 준비하기"
        assert body["meta"]["processed_at"] == "2024-06-10T23:30:00.000Z"
        assert isinstance(body["meta"]["processing_time"], int)

    def test_parse_applies_defaults(self, app_client, fake_extractor):
        fake_extractor.result = {"title": "t" * 130, "priority": "urgent", "category": "기타"}

        data = app_client.post("/api/ai-parse-todo", json={"text": "뭔가 하기"}).json()["data"]

        assert data["title"] == "t" * 117 + "..."
        assert data["priority"] == "medium"
        assert data["category"] == "개인"
        assert "due_date" not in data

    def test_prompt_uses_kst_anchors(self, app_client, fake_extractor):
        fake_extractor.result = {"title": "운동", "category": "건강"}
        app_client.post("/api/ai-parse-todo", json={"text": "내일 운동"})

        prompt = fake_extractor.calls[0][0]
        assert '"내일" → 2024-06-12T09:00:00.000Z' in prompt

    def test_missing_api_key(self, app_client, fake_extractor, monkeypatch):
        monkeypatch.setattr(config, "ANTHROPIC_API_KEY", None)

        response = app_client.post("/api/ai-parse-todo", json={"text": "내일 운동"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "API 키가 설정되지 않았습니다. 환경 변수 ANTHROPIC_API_KEY를 확인해주세요.",
        }
        assert fake_extractor.calls == []

    def test_placeholder_api_key_counts_as_missing(self, app_client, monkeypatch):
        monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "your-api-key-here")
        assert app_client.post("/api/ai-parse-todo", json={"text": "내일 운동"}).status_code == 500

    def test_invalid_json(self, app_client):
        response = app_client.post(
            "/api/ai-parse-todo", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("잘못된 JSON 형식입니다")

    @pytest.mark.parametrize("payload,fragment", [
        ({}, "유효한 텍스트"),
        ({"text": 123}, "유효한 텍스트"),
        ({"text": "a"}, "최소 2자"),
        ({"text": "a" * 501}, "최대 500자"),
        ({"text": "?!?!"}, "한글, 영문, 숫자"),
        ([1, 2], "유효한 텍스트"),
    ])
    def test_validation_errors(self, app_client, fake_extractor, payload, fragment):
        response = app_client.post("/api/ai-parse-todo", json=payload)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert fragment in response.json()["error"]
        assert fake_extractor.calls == []

    @pytest.mark.parametrize("error,status,fragment", [
        (ExtractionAuthError("bad key"), 401, "ANTHROPIC_API_KEY를 확인해주세요"),
        (ExtractionNetworkError("connection reset"), 503, "연결할 수 없습니다"),
        (ExtractionRateLimitError("429"), 429, "사용량이 초과되었습니다"),
        (ExtractionTimeoutError("took too long"), 408, "처리 시간이 초과되었습니다"),
        (ExtractionError("model exploded"), 500, "model exploded"),
    ])
    def test_extraction_failures(self, app_client, fake_extractor, error, status, fragment):
        fake_extractor.error = error

        response = app_client.post("/api/ai-parse-todo", json={"text": "내일 운동"})

        assert response.status_code == status
        assert response.json()["success"] is False
        assert fragment in response.json()["error"]


class TestSummaryEndpoint:
    """Tests for POST /api/ai-summary."""

    def _seed(self, user_id="user-1"):
        create_todo_db("t1", user_id, "보고서 제출", due_date=FIXED_NOW + timedelta(hours=3), priority="high")
        create_todo_db("t2", user_id, "운동", due_date=FIXED_NOW + timedelta(hours=1), category_id=3)
        update_todo_db("t2", user_id, is_completed=True)
        create_todo_db("t3", user_id, "지난주 일", due_date=FIXED_NOW - timedelta(days=9))

    def test_requires_authentication(self, app_client):
        response = app_client.post("/api/ai-summary", json={"period": "today"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "인증되지 않은 사용자입니다."}

    def test_rejects_bad_token(self, app_client):
        response = app_client.post(
            "/api/ai-summary", json={"period": "today"}, headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    @pytest.mark.parametrize("payload", [{}, {"period": "month"}, {"period": None}])
    def test_invalid_period(self, app_client, auth_headers, payload):
        response = app_client.post("/api/ai-summary", json=payload, headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["error"] == '분석 기간은 "today" 또는 "week"이어야 합니다.'

    def test_missing_api_key(self, app_client, auth_headers, monkeypatch):
        monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "")
        response = app_client.post("/api/ai-summary", json={"period": "today"}, headers=auth_headers())
        assert response.status_code == 500

    def test_empty_period_short_circuits(self, app_client, fake_extractor, auth_headers):
        response = app_client.post("/api/ai-summary", json={"period": "today"}, headers=auth_headers())

        assert response.status_code == 200
        body = response.json()
        assert body == {
            "success": True,
            "data": {
                "summary": "오늘 예정된 할일이 없습니다.",
                "urgentTasks": [],
                "insights": ["새로운 할일을 추가해보세요!"],
                "recommendations": ["할일을 추가하여 생산성을 높여보세요."],
            },
        }
        assert fake_extractor.calls == []

    def test_summary_success(self, app_client, fake_extractor, auth_headers):
        self._seed()
        fake_extractor.result = SUMMARY

        response = app_client.post("/api/ai-summary", json={"period": "today"}, headers=auth_headers())

        assert response.status_code == 200
        body = response.json()
        assert body["data"] == SUMMARY
        assert body["meta"] == {
            "period": "today",
            "totalTodos": 2,
            "completedTodos": 1,
            "completionRate": 50,
            "analyzed_at": "2024-06-10T23:30:00.000Z",
        }
        prompt = fake_extractor.calls[0][0]
        assert "- 건강: 1개 (완료: 1개, 완료율: 100%)" in prompt
        assert "- 보고서 제출" in prompt

    def test_only_callers_todos_are_analysed(self, app_client, fake_extractor, auth_headers):
        self._seed(user_id="someone-else")
        fake_extractor.result = SUMMARY

        response = app_client.post("/api/ai-summary", json={"period": "week"}, headers=auth_headers("user-1"))

        assert response.json()["data"]["summary"] == "이번주 예정된 할일이 없습니다."
        assert fake_extractor.calls == []

    @pytest.mark.parametrize("error,status,expected", [
        (ExtractionAuthError("bad key"), 401, "AI 서비스 API 키가 누락되었거나 잘못되었습니다."),
        (ExtractionNetworkError("down"), 503, "AI 서비스에 연결할 수 없습니다. 잠시 후 다시 시도해주세요."),
        (ExtractionRateLimitError("429"), 429, "AI 서비스 사용량이 초과되었습니다. 잠시 후 다시 시도해주세요."),
        (ExtractionTimeoutError("took too long"), 500, "took too long"),
        (ExtractionError(""), 500, "AI 분석 중 오류가 발생했습니다. 다시 시도해주세요."),
    ])
    def test_extraction_failures(self, app_client, fake_extractor, auth_headers, error, status, expected):
        self._seed()
        fake_extractor.error = error

        response = app_client.post("/api/ai-summary", json={"period": "today"}, headers=auth_headers())

        assert response.status_code == status
        assert response.json() == {"success": False, "error": expected}

    def test_malformed_model_response(self, app_client, fake_extractor, auth_headers):
        self._seed()
        fake_extractor.result = {"summary": "missing lists"}

        response = app_client.post("/api/ai-summary", json={"period": "today"}, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["success"] is False

    def test_store_failure(self, app_client, auth_headers, monkeypatch):
        import main

        def broken(_user_id):
            raise sqlite3.OperationalError("no such table: todos")

        monkeypatch.setattr(main, "get_todos_for_user", broken)

        response = app_client.post("/api/ai-summary", json={"period": "today"}, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["error"] == "할일 데이터를 가져오는 중 오류가 발생했습니다."


class TestTodoEndpoints:
    """Tests for /todos and /categories."""

    def test_list_categories(self, app_client):
        response = app_client.get("/categories")
        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["업무", "개인", "건강", "학습"]

    def test_todos_require_authentication(self, app_client):
        assert app_client.get("/todos").status_code == 401

    def test_create_and_list(self, app_client, auth_headers):
        response = app_client.post("/todos", json={
            "title": "병원 예약하기",
            "due_date": "2024-06-13T09:00:00.000Z",
            "priority": "medium",
            "category_id": 3,
        }, headers=auth_headers())

        assert response.status_code == 200
        created = response.json()
        assert created["category"] == {"id": 3, "name": "건강"}
        assert created["is_completed"] is False
        assert created["completed_at"] is None

        todos = app_client.get("/todos", headers=auth_headers()).json()
        assert [todo["id"] for todo in todos] == [created["id"]]

    def test_create_with_unknown_category(self, app_client, auth_headers):
        response = app_client.post("/todos", json={"title": "x", "category_id": 99}, headers=auth_headers())
        assert response.status_code == 400

    def test_complete_and_reopen(self, app_client, auth_headers):
        create_todo_db("t1", "user-1", "독서하기")

        done = app_client.patch("/todos/t1", json={"is_completed": True}, headers=auth_headers()).json()
        assert done["is_completed"] is True
        assert done["completed_at"] is not None

        reopened = app_client.patch("/todos/t1", json={"is_completed": False}, headers=auth_headers()).json()
        assert reopened["is_completed"] is False
        assert reopened["completed_at"] is None

    def test_filter_and_sort(self, app_client, auth_headers):
        create_todo_db("t1", "user-1", "보고서 작성", priority="low")
        create_todo_db("t2", "user-1", "회의 준비", priority="high")
        create_todo_db("t3", "user-1", "보고서 검토", priority="high")

        todos = app_client.get(
            "/todos", params={"search": "보고서", "sort": "priority", "direction": "desc"}, headers=auth_headers()
        ).json()
        assert [todo["id"] for todo in todos] == ["t3", "t1"]

    def test_cannot_touch_other_users_todo(self, app_client, auth_headers):
        create_todo_db("t1", "someone-else", "비밀")

        assert app_client.patch("/todos/t1", json={"title": "hacked"}, headers=auth_headers()).status_code == 404
        assert app_client.delete("/todos/t1", headers=auth_headers()).status_code == 404
        assert app_client.get("/todos", headers=auth_headers()).json() == []

    def test_delete(self, app_client, auth_headers):
        create_todo_db("t1", "user-1", "Delete me")

        response = app_client.delete("/todos/t1", headers=auth_headers())
        assert response.status_code == 200
        assert response.json()["status"] == "deleted"
        assert app_client.get("/todos", headers=auth_headers()).json() == []

    def test_invalid_create_body_uses_error_envelope(self, app_client, auth_headers):
        response = app_client.post("/todos", json={"description": "no title"}, headers=auth_headers())

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("요청 형식이 올바르지 않습니다.")
        assert "title" in body["error"]

    def test_invalid_update_body_uses_error_envelope(self, app_client, auth_headers):
        create_todo_db("t1", "user-1", "독서하기")

        response = app_client.patch("/todos/t1", json={"priority": "urgent"}, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "priority" in response.json()["error"]
