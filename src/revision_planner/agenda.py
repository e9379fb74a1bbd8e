from __future__ import annotations

from datetime import date
from typing import Iterable, Literal, Optional

from .logging import logger
from .models.revision import Agenda, AgendaItem, AgendaState, RevisionEntry


PastPolicy = Literal["floor", "drop"]


def project_agenda(
    entries: Optional[Iterable[RevisionEntry]],
    today: date,
    *,
    past_policy: PastPolicy = "floor",
) -> Agenda:
    """Turn stored entries into a date-ordered agenda.

    - floor: 期限切れは今日の日付で表示する（件数は入力と一致）
    - drop: 期限切れは除外する
    - 同じ表示日の項目は入力順を保つ（sorted は安定ソート）
    """
    stored = list(entries or [])
    if not stored:
        return Agenda(state=AgendaState.no_agenda)

    items: list[AgendaItem] = []
    for entry in stored:
        due = entry.due
        if due < today:
            if past_policy == "drop":
                continue
            due = today
        items.append(AgendaItem(**entry.model_dump(), display_date=due.isoformat()))

    items = sorted(items, key=lambda item: item.display_date)
    if not items:
        return Agenda(state=AgendaState.nothing_upcoming)

    logger.debug("agenda_projected", stored=len(stored), shown=len(items), past_policy=past_policy)
    return Agenda(state=AgendaState.ready, items=items)
