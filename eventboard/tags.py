from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .config import Settings, settings as default_settings
from .models import (
    DisplayTag,
    Tag,
    TagFilterRule,
    TagFormatOptions,
    TagNameFormat,
    TagOperator,
    TagOverflow,
    TaggedEntity,
)


TagList = List[Union[DisplayTag, TagOverflow]]


def tag_string(tag: Tag, name_format: TagNameFormat = TagNameFormat.FULL) -> str:
    if name_format == TagNameFormat.NONE:
        return tag.value
    name = tag.tag[:3] if name_format == TagNameFormat.SHORTENED else tag.tag
    return name if tag.value == "" else f"{name}: {tag.value}"


def sort_tags(tags: Iterable[Tag]) -> List[Tag]:
    return sorted(tags, key=lambda t: (t.tag, t.value))


def _rule_matches(tag: Tag, rule: TagFilterRule) -> bool:
    if rule.operator == TagOperator.EQUAL:
        return tag.value == rule.value
    return rule.value == "" or rule.value.lower() in tag.value.lower()


def order_tags_by_filter(tags: Sequence[Tag], rules: Sequence[TagFilterRule]) -> List[Tag]:
    """Move tags matched by any filter rule to the front."""
    by_name: Dict[str, List[TagFilterRule]] = defaultdict(list)
    for rule in rules:
        by_name[rule.tag].append(rule)

    first: List[Tag] = []
    rest: List[Tag] = []
    for tag in tags:
        if any(_rule_matches(tag, rule) for rule in by_name.get(tag.tag, ())):
            first.append(tag)
        else:
            rest.append(tag)
    return first + rest


def order_tags_by_priority(tags: Sequence[Tag], priority: Sequence[str]) -> List[Tag]:
    """Move tags named in ``priority`` to the front, in priority order."""
    taken = [False] * len(tags)
    first: List[Tag] = []
    for name in priority:
        for i, tag in enumerate(tags):
            if not taken[i] and tag.tag == name:
                first.append(tag)
                taken[i] = True
    return first + [tag for i, tag in enumerate(tags) if not taken[i]]


def _overflow(tags: Sequence[Tag]) -> TagOverflow:
    items = []
    for tag in tags:
        full = tag_string(tag)
        items.append(DisplayTag(text=full, hint=full))
    return TagOverflow(tags=items)


def make_tags(
    entities: Iterable[TaggedEntity],
    options: Optional[TagFormatOptions] = None,
    s: Optional[Settings] = None,
) -> Dict[str, Union[TagList, List[str]]]:
    """Build display tag lists keyed by entity id.

    In HTML mode the list holds at most ``max_shown`` non-empty tags, ordered
    by filter matches and then priority names, followed by a ``TagOverflow``
    when some tags were left out. Plain mode returns every tag as a string,
    uncut and in sorted order, for exports.
    """
    options = options or TagFormatOptions()
    s = s or default_settings
    max_shown = options.max_shown or s.tag_count_default

    out: Dict[str, Union[TagList, List[str]]] = {}
    for entity in entities:
        tags = sort_tags(entity.tags)

        if not options.html:
            out[entity.id] = [tag_string(tag) for tag in tags]
            continue

        ordered = order_tags_by_filter(tags, options.filter_rules) if options.filter_rules else tags
        if options.priority:
            ordered = order_tags_by_priority(ordered, options.priority)

        shown: TagList = []
        for tag in ordered:
            text = tag_string(tag, options.name_format)
            if text == "":
                continue
            shown.append(DisplayTag(text=text, hint=tag_string(tag)))
            if len(shown) >= max_shown:
                break

        if len(tags) > len(shown):
            shown.append(_overflow(tags))

        out[entity.id] = shown
    return out
