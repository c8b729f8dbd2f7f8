from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Event sources / objects as reported by the monitoring backend.
EVENT_SOURCE_TRIGGERS = 0
EVENT_SOURCE_DISCOVERY = 1
EVENT_SOURCE_AUTO_REGISTRATION = 2
EVENT_SOURCE_INTERNAL = 3

EVENT_OBJECT_TRIGGER = 0
EVENT_OBJECT_DHOST = 1
EVENT_OBJECT_DSERVICE = 2
EVENT_OBJECT_AUTOREGHOST = 3
EVENT_OBJECT_ITEM = 4
EVENT_OBJECT_LLDRULE = 5

TRIGGER_VALUE_FALSE = 0
TRIGGER_VALUE_TRUE = 1

USER_TYPE_SUPER_ADMIN = 3


class TagOperator(IntEnum):
    LIKE = 0
    EQUAL = 1


class TagNameFormat(IntEnum):
    FULL = 0
    SHORTENED = 1
    NONE = 2


class AckAction(IntEnum):
    """Bits of an acknowledge ``action`` mask."""

    CLOSE = 1
    ACKNOWLEDGE = 2
    MESSAGE = 4
    SEVERITY = 8


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str
    value: str = ""


class TaggedEntity(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    tags: list[Tag] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: Union[BaseModel, dict[str, Any]], key: str = "eventid") -> "TaggedEntity":
        data = record.model_dump() if isinstance(record, BaseModel) else record
        return cls(id=data[key], tags=data.get("tags") or [])


class TagFilterRule(BaseModel):
    tag: str
    operator: TagOperator = TagOperator.LIKE
    value: str = ""


class TagFormatOptions(BaseModel):
    """Display options for tag lists; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    html: bool = True
    max_shown: Optional[int] = Field(default=None, ge=1, description="Defaults to settings.tag_count_default")
    filter_rules: list[TagFilterRule] = Field(default_factory=list)
    name_format: TagNameFormat = TagNameFormat.FULL
    priority: list[str] = Field(default_factory=list, description="Tag names shown first, in order")

    @field_validator("priority", mode="before")
    @classmethod
    def _split_priority(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(v).strip() for v in value if str(v).strip()]


class DisplayTag(BaseModel):
    text: str
    hint: str


class TagOverflow(BaseModel):
    """Marker appended to a truncated tag list; expands to every tag."""

    tags: list[DisplayTag]


# --- Backend records ---


class Acknowledge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    acknowledgeid: int = 0
    userid: int = 0
    clock: int = 0
    message: str = ""
    action: int = 0
    old_severity: int = 0
    new_severity: int = 0

    def has(self, bit: AckAction) -> bool:
        return (self.action & bit) == bit


class EventRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    eventid: int
    source: int = EVENT_SOURCE_TRIGGERS
    object: int = EVENT_OBJECT_TRIGGER
    objectid: int = 0
    clock: int = 0
    ns: int = 0
    severity: int = 0
    acknowledged: bool = False
    r_eventid: int = 0
    correlationid: int = 0
    userid: int = 0
    name: str = ""
    acknowledges: list[Acknowledge] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return self.r_eventid != 0


class UserRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    userid: int
    alias: str = ""
    name: str = ""
    surname: str = ""


class UserContext(UserRecord):
    """The user the page is rendered for."""

    type: int = 1

    @property
    def is_super_admin(self) -> bool:
        return self.type == USER_TYPE_SUPER_ADMIN


class CorrelationRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    correlationid: int
    name: str = ""


# --- View rows ---


class Link(BaseModel):
    text: str
    url: str
    classes: list[str] = Field(default_factory=list)


class StyledText(BaseModel):
    text: str
    classes: list[str] = Field(default_factory=list)


class EventAction(BaseModel):
    clock: int
    time: str
    user: str
    actions: list[str]
    message: str = ""
    old_severity: Optional[str] = None
    new_severity: Optional[str] = None


class EventRow(BaseModel):
    eventid: int
    objectid: int
    clock: int
    r_eventid: int
    r_clock: int
    time: str
    recovery_time: str
    event_url: str
    value: int
    status: str
    status_class: str
    blink: bool
    age: str
    duration: str
    acknowledged: bool
    ack_label: str
    ack_class: str
    ack_url: str
    actions: list[EventAction] = Field(default_factory=list)


DetailValue = Union[str, Link, StyledText, list[Union[DisplayTag, TagOverflow]]]


class DetailRow(BaseModel):
    label: str
    value: DetailValue


class EventDetails(BaseModel):
    eventid: int
    rows: list[DetailRow]

    def get(self, label: str) -> Optional[DetailValue]:
        for row in self.rows:
            if row.label == label:
                return row.value
        return None
