from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query

from ..agenda import project_agenda
from ..config import settings
from ..logging import logger
from ..models.revision import (
    Agenda,
    ScheduleResponse,
    TopicCreateRequest,
    TopicCreateResponse,
    UserListResponse,
)
from ..schedule import RevisionPlannerError, build_entries, generate_schedule, parse_date
from ..store import store
from ..users import is_known_user, list_user_ids

router = APIRouter(tags=["revision"])


def get_today() -> date:
    """Resolve today's calendar date in the configured timezone.

    ここが時計を読む唯一の場所。テストでは dependency_overrides で差し替える。
    """
    return datetime.now(ZoneInfo(settings.timezone)).date()


def _require_user(user_id: int) -> None:
    if not is_known_user(user_id):
        raise HTTPException(status_code=404, detail="user not found")


@router.get("/users", response_model=UserListResponse, summary="選択可能なユーザID一覧")
def list_users() -> UserListResponse:
    return UserListResponse(user_ids=list_user_ids())


@router.get("/schedule", response_model=ScheduleResponse, summary="開始日から復習日程を算出（保存しない）")
def preview_schedule(
    start_date: str = Query(..., description="YYYY-MM-DD"),
    today: date = Depends(get_today),
) -> ScheduleResponse:
    try:
        start = parse_date(start_date)
        checkpoints = generate_schedule(start, today)
    except RevisionPlannerError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ScheduleResponse(start_date=start.isoformat(), checkpoints=checkpoints)


@router.post("/users/{user_id}/topics", response_model=TopicCreateResponse, summary="トピックを登録し復習日程を保存")
def add_topic(
    user_id: int,
    req: TopicCreateRequest,
    today: date = Depends(get_today),
) -> TopicCreateResponse:
    """Generate the revision schedule for a topic and persist it for the user."""
    _require_user(user_id)
    try:
        entries = build_entries(req.topic, generate_schedule(req.start_date, today))
    except RevisionPlannerError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    store.add(user_id, entries)
    logger.info("topic_added", user_id=user_id, topic=entries[0].topic, checkpoints=len(entries))
    agenda = project_agenda(store.get(user_id), today, past_policy=settings.agenda_past_policy)
    return TopicCreateResponse(user_id=user_id, entries=entries, agenda=agenda)


@router.get("/users/{user_id}/agenda", response_model=Agenda, summary="ユーザのアジェンダ（日付昇順）")
def get_agenda(user_id: int, today: date = Depends(get_today)) -> Agenda:
    _require_user(user_id)
    return project_agenda(store.get(user_id), today, past_policy=settings.agenda_past_policy)


@router.delete("/users/{user_id}/topics", summary="ユーザの復習エントリを全削除")
def clear_topics(user_id: int) -> dict[str, bool]:
    _require_user(user_id)
    store.clear(user_id)
    logger.info("topics_cleared", user_id=user_id)
    return {"ok": True}
