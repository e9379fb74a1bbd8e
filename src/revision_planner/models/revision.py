import datetime
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_calendar_date(text: str) -> datetime.date:
    """Parse a strict ``YYYY-MM-DD`` string; raise ``ValueError`` otherwise."""
    if not _ISO_DATE_RE.match(text):
        raise ValueError(f"invalid date: {text!r} (expected YYYY-MM-DD)")
    return datetime.date.fromisoformat(text)


class Checkpoint(BaseModel):
    """A labeled revision date produced by the schedule generator."""

    model_config = ConfigDict(frozen=True)

    label: str
    date: str


class RevisionEntry(BaseModel):
    """A checkpoint attached to a topic, as handed to the store.

    保存後は不変（frozen）。date は YYYY-MM-DD 形式の文字列。
    """

    model_config = ConfigDict(frozen=True)

    topic: str
    date: str
    label: str

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        # 不正な日付はアジェンダ投影時ではなく生成時に弾く
        parse_calendar_date(v)
        return v

    @property
    def due(self) -> datetime.date:
        return datetime.date.fromisoformat(self.date)


class AgendaItem(RevisionEntry):
    """A stored entry with the date it should be shown under."""

    display_date: str


class AgendaState(str, Enum):
    ready = "ready"
    no_agenda = "no_agenda"
    nothing_upcoming = "nothing_upcoming"


class Agenda(BaseModel):
    """Projected agenda for one user.

    - state=no_agenda: ユーザにまだ何も保存されていない
    - state=nothing_upcoming: 保存はあるが表示対象が残らなかった
    """

    state: AgendaState
    items: list[AgendaItem] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.state is not AgendaState.ready


class ScheduleResponse(BaseModel):
    start_date: str
    checkpoints: list[Checkpoint]


class TopicCreateRequest(BaseModel):
    """Request body for registering a new topic for a user."""

    topic: str = Field(min_length=1, max_length=200)
    start_date: str


class TopicCreateResponse(BaseModel):
    user_id: int
    entries: list[RevisionEntry]
    agenda: Agenda


class UserListResponse(BaseModel):
    user_ids: list[int]
