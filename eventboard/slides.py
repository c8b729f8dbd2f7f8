from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


WIDGET_SLIDESHOW = "hat_slides"


class SelectOption(BaseModel):
    value: str
    label: str


class Select(BaseModel):
    name: str
    label: str
    options: list[SelectOption]
    selected: Optional[str] = None


class Control(BaseModel):
    kind: str
    title: str
    enabled: bool = True
    params: dict[str, str] = Field(default_factory=dict)


class SlideshowPageData(BaseModel):
    """What the slideshow page knows about the current request."""

    element_id: Optional[int] = None
    # Whether a slideshow is currently selected and shown.
    has_screen: bool = False
    refresh_multiplier: str = "1"
    fullscreen: bool = False
    is_favourite: bool = False
    dynamic_items: bool = False
    groups: list[SelectOption] = Field(default_factory=list)
    hosts: list[SelectOption] = Field(default_factory=list)
    groupid: Optional[str] = None
    hostid: Optional[str] = None


class SlideshowPage(BaseModel):
    title: str
    form_name: str
    view_select: Select
    selects: list[Select]
    controls: list[Control]
    hidden: dict[str, str]
    filter_state_key: str
    container_id: str


def _favourite_control(data: SlideshowPageData) -> Control:
    if not data.has_screen:
        return Control(kind="favourite", title="Favourites", enabled=False)
    return Control(
        kind="favourite",
        title="Remove from favourites" if data.is_favourite else "Add to favourites",
        params={
            "fav": "web.favorite.screenids",
            "elname": "slideshowid",
            "elid": str(data.element_id or ""),
            "action": "remove" if data.is_favourite else "add",
        },
    )


def make_slideshow_page(data: SlideshowPageData) -> SlideshowPage:
    view_select = Select(
        name="config",
        label="",
        options=[
            SelectOption(value="screens.php", label="Screens"),
            SelectOption(value="slides.php", label="Slide shows"),
        ],
        selected="slides.php",
    )

    selects = []
    if data.dynamic_items:
        selects.append(Select(name="groupid", label="Group", options=data.groups, selected=data.groupid))
        selects.append(Select(name="hostid", label="Host", options=data.hosts, selected=data.hostid))

    controls = [_favourite_control(data)]
    if data.has_screen:
        controls.append(
            Control(
                kind="refresh",
                title="Refresh interval multiplier",
                params={
                    "widget": WIDGET_SLIDESHOW,
                    "multiplier": f"x{data.refresh_multiplier}",
                    "elementid": str(data.element_id or ""),
                },
            )
        )
    else:
        controls.append(Control(kind="refresh", title="Refresh interval multiplier", enabled=False))
    controls.append(
        Control(
            kind="fullscreen",
            title="Normal view" if data.fullscreen else "Fullscreen",
            params={"fullscreen": "0" if data.fullscreen else "1"},
        )
    )

    return SlideshowPage(
        title="Slide shows",
        form_name="slideHeaderForm",
        view_select=view_select,
        selects=selects,
        controls=controls,
        hidden={"fullscreen": "1" if data.fullscreen else "0"},
        filter_state_key="web.slides.filter.state",
        container_id=WIDGET_SLIDESHOW,
    )
