# Reference data and prompt templates for the two AI routes.
# Categories: the four canonical labels below are the only ones the app knows.
# Keyword tables are hints for the model, not rules we apply ourselves.

CATEGORY_NAMES = ("업무", "개인", "건강", "학습")
DEFAULT_CATEGORY = CATEGORY_NAMES[1]
UNCATEGORIZED_LABEL = "미분류"
DEFAULT_TITLE = "할일"

CATEGORY_KEYWORDS = {
    "업무": ("회의", "보고서", "프로젝트", "업무", "회사", "사무", "미팅", "발표", "기획", "업무용", "직장"),
    "개인": ("쇼핑", "친구", "가족", "개인", "여행", "휴가", "모임", "데이트", "놀이", "취미"),
    "건강": ("운동", "병원", "건강", "요가", "헬스", "약속", "검진", "치료", "약", "의료", "피트니스"),
    "학습": ("공부", "책", "강의", "학습", "독서", "교육", "수업", "시험", "책 읽기", "독서하기",
             "공부하기", "배우기", "읽기", "학원"),
}

PRIORITY_KEYWORDS = {
    "high": ("급하게", "중요한", "빨리", "꼭", "반드시"),
    "medium": ("보통", "적당히"),
    "low": ("여유롭게", "천천히", "언젠가"),
}

# Hour of day (KST) used when the text names a part of the day
TIME_OF_DAY_HOURS = {
    "아침": 9,
    "점심": 12,
    "오후": 14,
    "저녁": 18,
    "밤": 21,
}
DEFAULT_HOUR = 9

TIME_BUCKET_LABELS = {
    "morning": "오전 (06:00-12:00)",
    "afternoon": "오후 (12:00-18:00)",
    "evening": "저녁 (18:00-24:00)",
    "night": "밤 (00:00-06:00)",
}

PRIORITY_LABELS = {"high": "높음", "medium": "보통", "low": "낮음"}

PERIOD_LABELS = {"today": "오늘 (당일 분석)", "week": "이번주 (주간 분석)"}

PERIOD_FOCUS = {
    "today": "- 오늘의 요약: 당일 집중도와 남은 할일 우선순위 제시\n"
             "- 오늘 남은 시간을 효율적으로 활용하는 방법 제안",
    "week": "- 이번주 요약: 주간 패턴 분석 및 다음주 계획 제안\n"
            "- 주간 생산성 트렌드 분석 및 개선 방향 제시",
}

EMPTY_PERIOD_SUMMARY = {
    "today": "오늘 예정된 할일이 없습니다.",
    "week": "이번주 예정된 할일이 없습니다.",
}
EMPTY_INSIGHT = "새로운 할일을 추가해보세요!"
EMPTY_RECOMMENDATION = "할일을 추가하여 생산성을 높여보세요."


PARSE_PROMPT = """다음 자연어로 입력된 할일을 구조화된 데이터로 변환해주세요.

입력 텍스트: "{text}"

현재 날짜: {today} ({weekday})

=== 날짜 처리 규칙 ===
현재 날짜가 {today}이므로:
- "오늘" → {today}T{default_time}
- "내일" → {tomorrow}T{default_time}
- "모레" → {day_after_tomorrow}T{default_time}
- "이번주 금요일" → {this_friday}T{default_time}
- "다음주 월요일" → {next_monday}T{default_time}

=== 시간 처리 규칙 ===
{time_rules}
- 시간이 명시되지 않은 경우 {default_hour:02d}:00으로 기본 설정

=== 우선순위 키워드 ===
{priority_rules}

=== 카테고리 분류 키워드 ===
반드시 다음 카테고리 중 하나로 분류해야 합니다:
{category_rules}

중요: 카테고리는 반드시 정확한 한글 이름으로 반환해야 합니다 ({category_list} 중 하나).
특히 "책 읽기", "독서하기", "읽기" 등은 모두 "학습" 카테고리로 분류해야 합니다.
카테고리 필드는 필수이며, 반드시 위 {category_count}개 카테고리 중 하나를 선택해야 합니다.

=== 출력 형식 ===
반드시 지정된 스키마에 맞춰 응답하고, 모든 필드가 올바른 타입이어야 합니다.

=== 예시 ===
입력: "내일 오후 3시까지 중요한 팀 회의 준비하기"
출력: {{
  "title": "팀 회의 준비",
  "description": "내일 오후 3시까지 팀 회의를 위한 준비 작업",
  "due_date": "{tomorrow}T15:00:00.000Z",
  "priority": "high",
  "category": "업무"
}}

입력: "다음주 월요일까지 여유롭게 독서하기"
출력: {{
  "title": "독서하기",
  "due_date": "{next_monday}T{default_time}",
  "priority": "low",
  "category": "학습"
}}

입력: "오늘 저녁 운동하기"
출력: {{
  "title": "운동하기",
  "due_date": "{today}T18:00:00.000Z",
  "priority": "medium",
  "category": "건강"
}}

입력: "모레 아침에 병원 예약하기"
출력: {{
  "title": "병원 예약하기",
  "due_date": "{day_after_tomorrow}T09:00:00.000Z",
  "priority": "medium",
  "category": "건강"
}}

입력: "언젠가 책 읽기"
출력: {{
  "title": "책 읽기",
  "due_date": null,
  "priority": "low",
  "category": "학습"
}}

위 규칙에 따라 정확히 변환해주세요."""


SUMMARY_PROMPT = """당신은 전문적인 생산성 분석가입니다. 사용자의 할일 데이터를 분석하여 정교하고 실용적인 인사이트를 제공해주세요.

=== 분석 기간 ===
{period_label}

=== 기본 데이터 ===
총 {total_todos}개의 할일 중 {completed_todos}개 완료 (완료율: {completion_rate}%)

우선순위별 상세 분석:
{priority_lines}

마감일 현황:
- 지연된 할일: {overdue_tasks}개
- 오늘 마감: {due_today_tasks}개
- 내일 마감: {due_tomorrow_tasks}개
- 마감일 준수율: {on_time_rate}%

시간대별 분포:
{time_lines}
- 가장 집중된 시간대: {most_productive_time}

카테고리별 분석:
{category_lines}

긴급한 할일:
{urgent_lines}

=== 분석 요청사항 ===

**1. 완료율 분석**
- 일일/주간 완료율 계산 및 평가
- 우선순위별 완료 패턴 분석 (높음/보통/낮음 우선순위별 완료율)
- 마감일 준수율 계산 (지연된 할일 비율 분석)

**2. 시간 관리 분석**
- 마감일 준수율 계산 및 평가
- 연기된 할일의 빈도 및 패턴 파악
- 시간대별 업무 집중도 분포 분석 (어느 시간대에 가장 많은 할일이 집중되는지)

**3. 생산성 패턴**
- 가장 생산적인 요일과 시간대 도출
- 자주 미루는 작업 유형 식별
- 완료하기 쉬운 작업의 공통 특징 도출

**4. 실행 가능한 추천**
- 구체적인 시간 관리 팁 제공
- 우선순위 조정 및 일정 재배치 제안
- 업무 과부하를 줄이는 분산 전략 포함

**5. 긍정적인 피드백**
- 사용자가 잘하고 있는 부분 강조
- 개선점을 격려하는 긍정적 톤으로 제시
- 동기부여 메시지 포함

**6. 기간별 차별화**
{period_focus}

=== 출력 형식 ===

**summary**: 전체적인 요약 (완료율, 주요 성과, 개선 영역을 포함한 자연스러운 한국어 문장)

**urgentTasks**: 긴급하거나 중요한 할일 목록 (최대 5개, 구체적인 액션 아이템)

**insights**: 할일 패턴 분석 인사이트 (최대 5개, 데이터 기반의 구체적인 발견사항)

**recommendations**: 실행 가능한 추천사항 (최대 5개, 바로 실천할 수 있는 구체적인 조언)

=== 톤앤매너 ===
- 친근하고 격려하는 톤
- 전문적이면서도 이해하기 쉬운 언어
- 구체적이고 실용적인 조언
- 긍정적이면서도 현실적인 피드백
- 사용자의 노력을 인정하고 동기부여하는 메시지

분석 결과를 사용자가 이해하기 쉽고, 바로 실천할 수 있는 자연스러운 한국어 문장으로 구성해주세요."""
