from __future__ import annotations

from html import escape
from typing import Iterable, List, Sequence, Union

from .models import DetailValue, DisplayTag, EventDetails, EventRow, Link, StyledText, TagOverflow
from .slides import Control, Select, SlideshowPage


_PAGE = """<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>%%TITLE%%</title>
    <style>
      body { margin: 0; font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; line-height: 1.35; }
      .wrap { max-width: 1240px; margin: 0 auto; padding: 18px; }
      table.list-table { width: 100%; border-collapse: collapse; margin-bottom: 18px; }
      table.list-table th, table.list-table td { text-align: left; padding: 4px 8px; border-bottom: 1px solid #ddd; }
      .tag { display: inline-block; margin: 0 4px 2px 0; padding: 0 6px; border-radius: 3px; background: #eee; }
      .rel-container { position: relative; }
      .hint-box { display: none; max-width: 500px; }
      .rel-container:hover .hint-box { display: block; position: absolute; background: #fff; border: 1px solid #ccc; padding: 6px; }
      .red, .problem-unack-fg, .problem-ack-fg { color: #d64e4e; }
      .green, .ok-unack-fg, .ok-ack-fg { color: #429e47; }
      .blink { animation: blink 1s step-start infinite; }
      @keyframes blink { 50% { opacity: 0; } }
      .na-bg { background: #97aab3; } .info-bg { background: #7499ff; } .warning-bg { background: #ffc859; }
      .average-bg { background: #ffa059; } .high-bg { background: #e97659; } .disaster-bg { background: #e45959; }
      .wordwrap { word-break: break-word; }
      .preloader { min-height: 64px; }
    </style>
  </head>
  <body>
    <div class="wrap">
%%BODY%%
    </div>
  </body>
</html>
"""


def _classes(classes: Iterable[str]) -> str:
    return escape(" ".join(c for c in classes if c), quote=True)


def render_page(title: str, body: str) -> str:
    # Avoid str.format/f-strings here: the embedded CSS uses lots of curly braces.
    return _PAGE.replace("%%TITLE%%", escape(title)).replace("%%BODY%%", body)


def render_link(link: Link) -> str:
    return f'<a class="{_classes(link.classes)}" href="{escape(link.url, quote=True)}">{escape(link.text)}</a>'


def render_tags(tags: Sequence[Union[DisplayTag, TagOverflow]]) -> str:
    parts: List[str] = []
    for item in tags:
        if isinstance(item, TagOverflow):
            hint = "".join(
                f'<span class="tag" title="{escape(t.hint, quote=True)}">{escape(t.text)}</span>' for t in item.tags
            )
            parts.append(
                '<span class="rel-container">'
                '<button type="button" class="icon-wzrd-action" aria-label="All tags">&hellip;</button>'
                f'<div class="hint-box">{hint}</div>'
                "</span>"
            )
        else:
            parts.append(f'<span class="tag" title="{escape(item.hint, quote=True)}">{escape(item.text)}</span>')
    return "".join(parts)


def _render_value(value: DetailValue) -> str:
    if isinstance(value, Link):
        return render_link(value)
    if isinstance(value, StyledText):
        return f'<div class="{_classes(value.classes)}">{escape(value.text)}</div>'
    if isinstance(value, list):
        return render_tags(value)
    return escape(str(value))


def render_event_details(details: EventDetails) -> str:
    rows = "".join(
        f"<tr><td>{escape(row.label)}</td><td>{_render_value(row.value)}</td></tr>" for row in details.rows
    )
    return f'<table class="list-table event-details">{rows}</table>'


def _render_actions(row: EventRow) -> str:
    if not row.actions:
        return ""
    lines = []
    for action in row.actions:
        text = f"{action.time} {action.user}: {', '.join(action.actions)}"
        if action.old_severity is not None:
            text += f" ({action.old_severity} -> {action.new_severity})"
        if action.message:
            text += f" \"{action.message}\""
        lines.append(text)
    title = escape("\n".join(lines), quote=True)
    return f'<span class="event-actions" title="{title}">{len(row.actions)}</span>'


def render_event_list(rows: Sequence[EventRow]) -> str:
    header = "".join(
        f"<th>{h}</th>" for h in ("Time", "Recovery time", "Status", "Age", "Duration", "Ack", "Actions")
    )
    body: List[str] = []
    for row in rows:
        status_classes = [row.status_class] + (["blink"] if row.blink else [])
        recovery = (
            render_link(Link(text=row.recovery_time, url=row.event_url, classes=["action"]))
            if row.recovery_time
            else ""
        )
        ack = Link(text=row.ack_label, url=row.ack_url, classes=[row.ack_class, "link-alt"])
        body.append(
            "<tr>"
            f"<td>{render_link(Link(text=row.time, url=row.event_url, classes=['action']))}</td>"
            f"<td>{recovery}</td>"
            f'<td><span class="{_classes(status_classes)}">{escape(row.status)}</span></td>'
            f"<td>{escape(row.age)}</td>"
            f"<td>{escape(row.duration)}</td>"
            f"<td>{render_link(ack)}</td>"
            f"<td>{_render_actions(row)}</td>"
            "</tr>"
        )
    if not rows:
        body.append('<tr class="nothing-to-show"><td colspan="7">No data found.</td></tr>')
    return f'<table class="list-table event-list"><thead><tr>{header}</tr></thead><tbody>{"".join(body)}</tbody></table>'


def render_event_page(details: EventDetails, rows: Sequence[EventRow], limit: int = 20) -> str:
    body = (
        "<h1>Event details</h1>"
        + render_event_details(details)
        + f"<h2>Event list [previous {int(limit)}]</h2>"
        + render_event_list(rows)
    )
    return render_page("Event details", body)


def _render_select(select: Select, onchange: str = "") -> str:
    options = "".join(
        f'<option value="{escape(o.value, quote=True)}"{" selected" if o.value == select.selected else ""}>'
        f"{escape(o.label)}</option>"
        for o in select.options
    )
    attr = f' onchange="{escape(onchange, quote=True)}"' if onchange else ""
    label = f"<label>{escape(select.label)} " if select.label else ""
    close = "</label>" if select.label else ""
    return f'{label}<select name="{escape(select.name, quote=True)}"{attr}>{options}</select>{close}'


def _render_control(control: Control) -> str:
    data = "".join(
        f' data-{escape(k, quote=True)}="{escape(v, quote=True)}"' for k, v in sorted(control.params.items())
    )
    disabled = "" if control.enabled else " disabled"
    return (
        f'<button type="button" class="btn-{escape(control.kind, quote=True)}" '
        f'title="{escape(control.title, quote=True)}"{data}{disabled}></button>'
    )


def render_slideshow_page(page: SlideshowPage) -> str:
    items = [_render_select(page.view_select, "redirect(this.options[this.selectedIndex].value);")]
    items.extend(_render_select(s, "this.form.submit();") for s in page.selects)
    items.extend(_render_control(c) for c in page.controls)
    controls = "".join(f"<li>{item}</li>" for item in items)
    hidden = "".join(
        f'<input type="hidden" name="{escape(k, quote=True)}" value="{escape(v, quote=True)}" />'
        for k, v in page.hidden.items()
    )
    body = (
        f"<h1>{escape(page.title)}</h1>"
        f'<form method="get" name="{escape(page.form_name, quote=True)}">{hidden}<ul class="controls">{controls}</ul></form>'
        f'<div class="filter-container" data-profile="{escape(page.filter_state_key, quote=True)}">'
        '<div class="filter-navigator"></div></div>'
        f'<div id="{escape(page.container_id, quote=True)}"><div class="preloader"></div></div>'
    )
    return render_page(page.title, body)
