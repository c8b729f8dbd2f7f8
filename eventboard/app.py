from __future__ import annotations

import time
from typing import Any, Dict, Iterator, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse

from .api import ApiClient, ApiError
from .config import settings
from .events import make_event_details, summarize_event_window
from .models import (
    EVENT_OBJECT_TRIGGER,
    EVENT_SOURCE_TRIGGERS,
    EventRecord,
    TagFilterRule,
    TagFormatOptions,
    TagNameFormat,
    TagOperator,
    TaggedEntity,
    UserContext,
)
from .slides import SelectOption, SlideshowPageData, make_slideshow_page
from .tags import make_tags
from .web import render_event_page, render_slideshow_page


app = FastAPI(title="Event board", version=settings.app_version)


def get_api() -> Iterator[ApiClient]:
    with ApiClient() as api:
        yield api


def get_user(api: ApiClient = Depends(get_api)) -> UserContext:
    return UserContext.model_validate(api.check_authentication())


@app.exception_handler(ApiError)
async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse({"ok": False, "error": str(exc), "code": exc.code}, status_code=502)


def _load_event(api: ApiClient, eventid: int, triggerid: Optional[int] = None) -> EventRecord:
    options: Dict[str, Any] = {
        "output": "extend",
        "select_acknowledges": "extend",
        "selectTags": ["tag", "value"],
        "source": EVENT_SOURCE_TRIGGERS,
        "object": EVENT_OBJECT_TRIGGER,
        "eventids": [eventid],
    }
    if triggerid is not None:
        options["objectids"] = [triggerid]
    found = api.get("event", **options)
    if not found:
        raise HTTPException(status_code=404, detail="Event not found")
    return EventRecord.model_validate(found[0])


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "ts": time.time()}


@app.get("/events/{eventid}", response_class=HTMLResponse)
def event_page(
    request: Request,
    eventid: int,
    triggerid: Optional[int] = None,
    api: ApiClient = Depends(get_api),
    user: UserContext = Depends(get_user),
) -> str:
    event = _load_event(api, eventid, triggerid)
    backurl = str(request.url.path)
    details = make_event_details(api, event, backurl=backurl, user=user)
    rows = summarize_event_window(api, event, backurl=backurl)
    return render_event_page(details, rows, limit=settings.event_window_limit)


@app.get("/api/events/tags")
def event_tags(
    eventids: List[int] = Query(...),
    plain: bool = False,
    max_shown: Optional[int] = Query(default=None, ge=1),
    name_format: int = Query(default=int(TagNameFormat.FULL), ge=0, le=2),
    priority: str = "",
    filter_tag: List[str] = Query(default=[]),
    filter_operator: List[int] = Query(default=[]),
    filter_value: List[str] = Query(default=[]),
    api: ApiClient = Depends(get_api),
) -> Dict[str, Any]:
    if not (len(filter_tag) == len(filter_operator) == len(filter_value)):
        raise HTTPException(status_code=422, detail="filter_tag, filter_operator and filter_value must pair up")
    if any(o not in (TagOperator.LIKE, TagOperator.EQUAL) for o in filter_operator):
        raise HTTPException(status_code=422, detail="filter_operator must be 0 (like) or 1 (equal)")

    rules = [
        TagFilterRule(tag=t, operator=TagOperator(o), value=v)
        for t, o, v in zip(filter_tag, filter_operator, filter_value)
    ]
    options = TagFormatOptions(
        html=not plain,
        max_shown=max_shown,
        filter_rules=rules,
        name_format=TagNameFormat(name_format),
        priority=priority,
    )
    records = api.get("event", output=["eventid"], selectTags=["tag", "value"], eventids=eventids)
    tags = make_tags([TaggedEntity.from_record(r) for r in records], options)
    return {
        eventid: [t if isinstance(t, str) else t.model_dump() for t in items]
        for eventid, items in tags.items()
    }


@app.get("/api/events/{eventid}/window")
def event_window(
    eventid: int,
    limit: int = Query(default=settings.event_window_limit, ge=1, le=500),
    api: ApiClient = Depends(get_api),
) -> List[Dict[str, Any]]:
    event = _load_event(api, eventid)
    rows = summarize_event_window(api, event, backurl=f"/events/{eventid}", limit=limit)
    return [row.model_dump() for row in rows]


@app.get("/slides", response_class=HTMLResponse)
def slides_page(
    elementid: Optional[int] = None,
    fullscreen: bool = False,
    favourite: bool = False,
    refresh_multiplier: str = "1",
    dynamic: bool = False,
    groupid: Optional[str] = None,
    hostid: Optional[str] = None,
    api: ApiClient = Depends(get_api),
) -> str:
    groups: List[SelectOption] = []
    hosts: List[SelectOption] = []
    if dynamic:
        for g in api.get("hostgroup", output=["groupid", "name"], monitored_hosts=True, sortfield="name"):
            groups.append(SelectOption(value=str(g["groupid"]), label=str(g["name"])))
        host_options: Dict[str, Any] = {"output": ["hostid", "name"], "monitored_hosts": True, "sortfield": "name"}
        if groupid:
            host_options["groupids"] = [groupid]
        for h in api.get("host", **host_options):
            hosts.append(SelectOption(value=str(h["hostid"]), label=str(h["name"])))

    data = SlideshowPageData(
        element_id=elementid,
        has_screen=elementid is not None,
        refresh_multiplier=refresh_multiplier,
        fullscreen=fullscreen,
        is_favourite=favourite,
        dynamic_items=dynamic,
        groups=groups,
        hosts=hosts,
        groupid=groupid,
        hostid=hostid,
    )
    return render_slideshow_page(make_slideshow_page(data))
