from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from .api import ApiClient
from .config import Settings, settings as default_settings
from .formatting import (
    acknowledge_url,
    action_labels,
    correlation_url,
    date2age,
    date2str,
    event_url,
    now_ts,
    severity_class,
    severity_name,
    should_blink,
    trigger_value_class,
    user_fullname,
)
from .models import (
    EVENT_OBJECT_AUTOREGHOST,
    EVENT_OBJECT_DHOST,
    EVENT_OBJECT_DSERVICE,
    EVENT_OBJECT_ITEM,
    EVENT_OBJECT_LLDRULE,
    EVENT_OBJECT_TRIGGER,
    EVENT_SOURCE_AUTO_REGISTRATION,
    EVENT_SOURCE_DISCOVERY,
    EVENT_SOURCE_INTERNAL,
    EVENT_SOURCE_TRIGGERS,
    TRIGGER_VALUE_FALSE,
    TRIGGER_VALUE_TRUE,
    AckAction,
    CorrelationRecord,
    DetailRow,
    EventAction,
    EventDetails,
    EventRecord,
    EventRow,
    Link,
    StyledText,
    TaggedEntity,
    UserContext,
    UserRecord,
)
from .tags import make_tags


log = logging.getLogger("uvicorn")

_EVENT_SOURCES = {
    EVENT_SOURCE_TRIGGERS: "trigger",
    EVENT_SOURCE_DISCOVERY: "discovery",
    EVENT_SOURCE_AUTO_REGISTRATION: "auto registration",
    EVENT_SOURCE_INTERNAL: "internal",
}

_EVENT_OBJECTS = {
    EVENT_OBJECT_TRIGGER: "trigger",
    EVENT_OBJECT_DHOST: "discovered host",
    EVENT_OBJECT_DSERVICE: "discovered service",
    EVENT_OBJECT_AUTOREGHOST: "auto-registered host",
    EVENT_OBJECT_ITEM: "item",
    EVENT_OBJECT_LLDRULE: "low-level discovery rule",
}

_EVENT_FIELDS = ["eventid", "source", "object", "objectid", "acknowledged", "clock", "ns", "severity", "r_eventid"]
_ACK_FIELDS = ["userid", "clock", "message", "action", "old_severity", "new_severity"]


def event_source(source: Optional[int] = None) -> Union[str, Dict[int, str]]:
    if source is None:
        return dict(_EVENT_SOURCES)
    return _EVENT_SOURCES.get(source, "Unknown")


def event_object(obj: Optional[int] = None) -> Union[str, Dict[int, str]]:
    if obj is None:
        return dict(_EVENT_OBJECTS)
    return _EVENT_OBJECTS.get(obj, "Unknown")


def event_source_objects() -> List[Dict[str, int]]:
    return [
        {"source": EVENT_SOURCE_TRIGGERS, "object": EVENT_OBJECT_TRIGGER},
        {"source": EVENT_SOURCE_DISCOVERY, "object": EVENT_OBJECT_DHOST},
        {"source": EVENT_SOURCE_DISCOVERY, "object": EVENT_OBJECT_DSERVICE},
        {"source": EVENT_SOURCE_AUTO_REGISTRATION, "object": EVENT_OBJECT_AUTOREGHOST},
        {"source": EVENT_SOURCE_INTERNAL, "object": EVENT_OBJECT_TRIGGER},
        {"source": EVENT_SOURCE_INTERNAL, "object": EVENT_OBJECT_ITEM},
        {"source": EVENT_SOURCE_INTERNAL, "object": EVENT_OBJECT_LLDRULE},
    ]


def count_unacknowledged_events(
    api: ApiClient,
    *,
    hostids: Iterable[int] = (),
    groupids: Iterable[int] = (),
    triggerids: Iterable[int] = (),
    trigger_value: Optional[int] = None,
    event_value: Optional[int] = None,
    acknowledged: bool = False,
    s: Optional[Settings] = None,
) -> int:
    """Count events of the monitored triggers behind a set of hosts/groups/triggers."""
    s = s or default_settings
    hostids = sorted(set(hostids))
    groupids = sorted(set(groupids))
    triggerids = sorted(set(triggerids))
    if not (hostids or groupids or triggerids):
        return 0

    options: Dict[str, Any] = {
        "output": ["triggerid"],
        "monitored": True,
        "skipDependent": True,
        "limit": s.search_limit + 1,
    }
    if trigger_value is not None:
        options["filter"] = {"value": trigger_value}
    if groupids:
        options["groupids"] = groupids
    if hostids:
        options["hostids"] = hostids
    if triggerids:
        options["triggerids"] = triggerids
    triggers = api.get("trigger", **options)

    event_filter: Dict[str, Any] = {"acknowledged": 1 if acknowledged else 0}
    if event_value is not None:
        event_filter["value"] = event_value

    return api.count(
        "event",
        source=EVENT_SOURCE_TRIGGERS,
        object=EVENT_OBJECT_TRIGGER,
        objectids=[t["triggerid"] for t in triggers],
        filter=event_filter,
    )


def _ack_cell(event_id: int, acknowledged: bool, backurl: str) -> Link:
    return Link(
        text="Yes" if acknowledged else "No",
        url=acknowledge_url(event_id, backurl),
        classes=["green" if acknowledged else "red", "link-alt"],
    )


def _resolved_by(api: ApiClient, event: EventRecord, user: UserContext) -> Union[str, Link]:
    if event.correlationid != 0:
        found = api.get("correlation", output=["correlationid", "name"], correlationids=[event.correlationid])
        if not found:
            return "Correlation rule"
        correlation = CorrelationRecord.model_validate(found[0])
        if user.is_super_admin:
            return Link(
                text=correlation.name,
                url=correlation_url(correlation.correlationid),
                classes=["link-alt"],
            )
        return correlation.name

    if event.userid != 0:
        if event.userid == user.userid:
            return user_fullname(user)
        found = api.get("user", output=["alias", "name", "surname"], userids=[event.userid])
        if not found:
            return "Inaccessible user"
        return user_fullname(UserRecord.model_validate({"userid": event.userid, **found[0]}))

    return "Trigger"


def make_event_details(
    api: ApiClient,
    event: EventRecord,
    *,
    backurl: str,
    user: UserContext,
    s: Optional[Settings] = None,
) -> EventDetails:
    s = s or default_settings
    rows = [
        DetailRow(label="Event", value=StyledText(text=event.name, classes=["wordwrap"])),
        DetailRow(
            label="Severity",
            value=StyledText(text=severity_name(event.severity, s), classes=[severity_class(event.severity)]),
        ),
        DetailRow(label="Time", value=date2str(event.clock, s)),
        DetailRow(label="Acknowledged", value=_ack_cell(event.eventid, event.acknowledged, backurl)),
    ]

    if event.is_resolved:
        rows.append(DetailRow(label="Resolved by", value=_resolved_by(api, event, user)))

    tags = make_tags([TaggedEntity.from_record(event)], s=s)
    rows.append(DetailRow(label="Tags", value=tags[str(event.eventid)]))

    return EventDetails(eventid=event.eventid, rows=rows)


def fetch_recovery_clocks(api: ApiClient, events: Iterable[EventRecord]) -> Dict[int, int]:
    """Map each referenced recovery event id to its clock."""
    r_eventids = sorted({e.r_eventid for e in events if e.r_eventid != 0})
    if not r_eventids:
        return {}

    records = api.get_by_id(
        "event",
        "eventid",
        output=["clock"],
        source=EVENT_SOURCE_TRIGGERS,
        object=EVENT_OBJECT_TRIGGER,
        eventids=r_eventids,
    )
    return {eventid: int(r["clock"]) for eventid, r in records.items()}


def _fetch_users(api: ApiClient, events: Iterable[EventRecord]) -> Dict[int, UserRecord]:
    userids = sorted({a.userid for e in events for a in e.acknowledges if a.userid})
    if not userids:
        return {}
    records = api.get_by_id("user", "userid", output=["alias", "name", "surname"], userids=userids)
    return {userid: UserRecord.model_validate(r) for userid, r in records.items()}


def _event_actions(event: EventRecord, users: Dict[int, UserRecord], s: Settings) -> List[EventAction]:
    out: List[EventAction] = []
    for ack in sorted(event.acknowledges, key=lambda a: a.clock, reverse=True):
        user = users.get(ack.userid)
        changed = ack.has(AckAction.SEVERITY)
        out.append(
            EventAction(
                clock=ack.clock,
                time=date2str(ack.clock, s),
                user=user_fullname(user) if user else "Inaccessible user",
                actions=action_labels(ack.action),
                message=ack.message,
                old_severity=severity_name(ack.old_severity, s) if changed else None,
                new_severity=severity_name(ack.new_severity, s) if changed else None,
            )
        )
    return out


def _event_row(
    event: EventRecord,
    r_clock: int,
    *,
    backurl: str,
    now: int,
    users: Dict[int, UserRecord],
    s: Settings,
) -> EventRow:
    resolved = r_clock != 0

    if not resolved:
        closing = any(ack.has(AckAction.CLOSE) for ack in event.acknowledges)
        value = TRIGGER_VALUE_FALSE if closing else TRIGGER_VALUE_TRUE
        status = "CLOSING" if closing else "PROBLEM"
        value_clock = now if closing else event.clock
    else:
        value = TRIGGER_VALUE_FALSE
        status = "RESOLVED"
        value_clock = r_clock

    link = event_url(event.objectid, event.eventid)
    return EventRow(
        eventid=event.eventid,
        objectid=event.objectid,
        clock=event.clock,
        r_eventid=event.r_eventid,
        r_clock=r_clock,
        time=date2str(event.clock, s),
        recovery_time=date2str(r_clock, s) if resolved else "",
        event_url=link,
        value=value,
        status=status,
        status_class=trigger_value_class(value, event.acknowledged),
        blink=should_blink(value_clock, now, s),
        age=date2age(event.clock, now=now),
        duration=date2age(event.clock, r_clock, now=now),
        acknowledged=event.acknowledged,
        ack_label="Yes" if event.acknowledged else "No",
        ack_class="green" if event.acknowledged else "red",
        ack_url=acknowledge_url(event.eventid, backurl),
        actions=_event_actions(event, users, s),
    )


def summarize_event_window(
    api: ApiClient,
    start_event: EventRecord,
    *,
    backurl: str = "",
    limit: Optional[int] = None,
    now: Optional[int] = None,
    s: Optional[Settings] = None,
) -> List[EventRow]:
    """Recent problems of ``start_event``'s trigger up to and including it, newest first.

    Each problem is paired with its recovery event. A recovery id that no
    longer resolves to an event is treated as still open.
    """
    s = s or default_settings
    limit = s.event_window_limit if limit is None else limit
    now = now_ts() if now is None else now

    records = api.get(
        "event",
        output=_EVENT_FIELDS,
        select_acknowledges=_ACK_FIELDS,
        source=EVENT_SOURCE_TRIGGERS,
        object=EVENT_OBJECT_TRIGGER,
        value=TRIGGER_VALUE_TRUE,
        objectids=[start_event.objectid],
        eventid_till=start_event.eventid,
        sortfield=["clock", "eventid"],
        sortorder="DESC",
        limit=limit,
        preservekeys=True,
    )
    events = [EventRecord.model_validate(r) for r in records]
    if not events:
        return []

    r_clocks = fetch_recovery_clocks(api, events)
    users = _fetch_users(api, events)

    rows: List[EventRow] = []
    for event in events:
        r_clock = r_clocks.get(event.r_eventid, 0) if event.is_resolved else 0
        if event.is_resolved and r_clock == 0:
            log.warning(
                "event %s references missing recovery event %s; showing it as open",
                event.eventid,
                event.r_eventid,
            )
        rows.append(_event_row(event, r_clock, backurl=backurl, now=now, users=users, s=s))
    return rows
