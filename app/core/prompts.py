"""
Prompt builders for the completion service.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from app import config

WEEKDAYS_RU = [
    "понедельник",
    "вторник",
    "среда",
    "четверг",
    "пятница",
    "суббота",
    "воскресенье",
]

MONTHS_RU_GENITIVE = [
    "января",
    "февраля",
    "марта",
    "апреля",
    "мая",
    "июня",
    "июля",
    "августа",
    "сентября",
    "октября",
    "ноября",
    "декабря",
]

UPCOMING_EVENTS_LIMIT = 5


def reference_tz() -> ZoneInfo:
    return ZoneInfo(config.TIMEZONE)


def now_local() -> datetime:
    return datetime.now(reference_tz())


def human_datetime(moment: datetime) -> str:
    """e.g. "понедельник, 19 октября 2026 г., 14:05" """
    return (
        f"{WEEKDAYS_RU[moment.weekday()]}, {moment.day} "
        f"{MONTHS_RU_GENITIVE[moment.month - 1]} {moment.year} г., "
        f"{moment:%H:%M}"
    )


def parse_event_date(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 event date; naive values are read in the reference timezone."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=reference_tz())
    return parsed


def upcoming_events(events: List[dict], now: datetime) -> List[tuple]:
    """Non-past events as (date, event) pairs, soonest first."""
    dated = []
    for event in events:
        if not isinstance(event, dict):
            continue
        when = parse_event_date(event.get("date"))
        if when is not None and when >= now:
            dated.append((when, event))
    dated.sort(key=lambda pair: pair[0])
    return dated[:UPCOMING_EVENTS_LIMIT]


def format_user_context(user: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """Digest of open tasks and the next upcoming events."""
    now = now or now_local()
    tz = reference_tz()

    active_todos = "\n".join(
        f"- [Task] {todo.get('title', '')} ({todo.get('priority', 'Medium')})"
        for todo in user.get("todos", [])
        if isinstance(todo, dict) and not todo.get("completed")
    )

    events = "\n".join(
        f"- [Event] {event.get('title', '')} at {when.astimezone(tz):%d.%m.%Y, %H:%M}"
        for when, event in upcoming_events(user.get("events", []), now)
    )

    return (
        "USER DATA CONTEXT:\n"
        "Todos:\n"
        f"{active_todos or 'No active tasks'}\n\n"
        "Upcoming Events:\n"
        f"{events or 'No upcoming events'}"
    )


def build_system_prompt(user: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """System prompt for intent classification."""
    now = now or now_local()
    return f"""Role: You are Lana, a smart, friendly, and structured Personal Assistant.
CURRENT DATE/TIME ({config.TIMEZONE}): {human_datetime(now)}.
CURRENT DATE/TIME ISO: {now.isoformat(timespec="minutes")}.

{format_user_context(user, now)}

YOUR GOAL: Analyze user input, decide ACTION, and generate a BEAUTIFUL response in Russian using Markdown V1.

POSSIBLE ACTIONS:
1. IF user wants to ADD/CREATE data:
   - "create_task": data = {{"title": string, "priority": "High" | "Medium" | "Low", "description": string (optional)}}
   - "create_transaction": data = {{"amount": number, "category": string (short Russian category), "type": "expense" | "income", "description": string (optional)}}
   - "create_event": data = {{"title": string, "date": ISO 8601 string with time, in {config.TIMEZONE}}}
   - "create_note": data = {{"content": string}}
2. IF user asks for LINK to the app: "send_link".
3. IF user wants to CHAT or asks about their tasks/events: "chat".

For "create_transaction", always extract "amount", "category", "type" (expense/income).

Return ONLY a JSON object:
{{"action": string, "data": object, "responseMessage": string}}
"""


def build_budget_prompt(now: Optional[datetime] = None) -> str:
    """System prompt for standalone transaction extraction."""
    now = now or now_local()
    return f"""Role: Financial Assistant.
Current Date: {now.isoformat()}.
Task: Analyze text and extract transaction details.
Return JSON:
{{
    "amount": number,
    "category": "string (Short Russian category)",
    "description": "string",
    "date": "ISO string",
    "type": "income" | "expense"
}}
Keywords for Expense: купил, потратил, минус, оплатил, такси, еда.
Keywords for Income: получил, зарплата, плюс, пришло, перевод.
"""


TIP_SYSTEM_PROMPT = (
    "You are a helpful assistant. "
    "Provide a very short (max 15 words) motivational tip in Russian."
)
