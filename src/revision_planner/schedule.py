"""Revision schedule generation.

開始日から 1週間/1ヶ月/3ヶ月/6ヶ月/1年 の復習チェックポイントを算出する。

- 月加算は「対象月の末日で丸める」方式（1/31 + 1ヶ月 = 2/28、うるう年は 2/29）
- 算出日が今日より前なら、ルールごとの追い上げ月数で今日から振り直す
  （1 Month=今日, 3 Months=+2ヶ月, 6 Months=+5ヶ月, 1 Year=+11ヶ月）
- 1 Week は振り直し枠を持たないため、過去日のままなら出力から外す
- today は呼び出し側から注入する（時計を直接読まない）
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from .logging import logger
from .models.revision import Checkpoint, RevisionEntry, parse_calendar_date


class RevisionPlannerError(ValueError):
    """Base class for caller-facing validation errors."""


class InvalidDate(RevisionPlannerError):
    """Raised when a start date is not a YYYY-MM-DD calendar date."""


class InvalidTopic(RevisionPlannerError):
    """Raised when a topic name is blank."""


@dataclass(frozen=True)
class ScheduleRule:
    label: str
    days: int = 0
    months: int = 0
    # 過去日を今日から振り直す際の月数。None は振り直し対象外
    catch_up_months: Optional[int] = None

    def apply(self, start: date) -> date:
        if self.months:
            return add_months(start, self.months)
        return start + timedelta(days=self.days)


SCHEDULE_RULES: tuple[ScheduleRule, ...] = (
    ScheduleRule("1 Week", days=7),
    ScheduleRule("1 Month", months=1, catch_up_months=0),
    ScheduleRule("3 Months", months=3, catch_up_months=2),
    ScheduleRule("6 Months", months=6, catch_up_months=5),
    ScheduleRule("1 Year", months=12, catch_up_months=11),
)

LABELS: tuple[str, ...] = tuple(rule.label for rule in SCHEDULE_RULES)


def add_months(value: date, months: int) -> date:
    """Advance ``value`` by calendar months, clamping to the target month's last day."""
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def parse_date(value: Union[str, date]) -> date:
    """Parse a strict ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"start date must be a string, got {type(value).__name__}")
    try:
        return parse_calendar_date(value.strip())
    except ValueError as exc:
        raise InvalidDate(f"invalid date: {value!r} (expected YYYY-MM-DD)") from exc


def generate_schedule(start_date: Union[str, date], today: date) -> List[Checkpoint]:
    """Return the revision checkpoints for a topic started on ``start_date``.

    Output is in canonical label order and every date is ``today`` or later.
    Raises :class:`InvalidDate` when ``start_date`` does not parse.
    """
    start = parse_date(start_date)
    checkpoints: List[Checkpoint] = []
    try:
        for rule in SCHEDULE_RULES:
            due = rule.apply(start)
            if due < today and rule.catch_up_months is not None:
                due = add_months(today, rule.catch_up_months)
            if due < today:
                continue
            checkpoints.append(Checkpoint(label=rule.label, date=due.isoformat()))
    except (OverflowError, ValueError) as exc:
        # 9999年を超える日付は表現できない
        raise InvalidDate(f"schedule for {start.isoformat()} runs past {date.max.isoformat()}") from exc

    logger.debug(
        "schedule_generated",
        start_date=start.isoformat(),
        today=today.isoformat(),
        labels=[c.label for c in checkpoints],
    )
    return checkpoints


def build_entries(topic: str, checkpoints: Iterable[Checkpoint]) -> List[RevisionEntry]:
    """Attach ``topic`` to each checkpoint, producing storable entries."""
    name = (topic or "").strip()
    if not name:
        raise InvalidTopic("topic is required")
    return [RevisionEntry(topic=name, date=c.date, label=c.label) for c in checkpoints]
