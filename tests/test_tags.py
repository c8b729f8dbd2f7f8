"""Tests for tag ordering, truncation and rendering."""

import pytest
from pydantic import ValidationError

from eventboard.models import (
    DisplayTag,
    Tag,
    TagFilterRule,
    TagFormatOptions,
    TagNameFormat,
    TagOperator,
    TagOverflow,
    TaggedEntity,
)
from eventboard.tags import make_tags, order_tags_by_filter, order_tags_by_priority, tag_string


def _entity(*pairs: tuple, id: str = "1") -> TaggedEntity:
    return TaggedEntity(id=id, tags=[Tag(tag=t, value=v) for t, v in pairs])


def _texts(items: list) -> list:
    return [i.text for i in items if isinstance(i, DisplayTag)]


def test_tag_string_formats() -> None:
    tag = Tag(tag="environment", value="prod")
    assert tag_string(tag) == "environment: prod"
    assert tag_string(tag, TagNameFormat.SHORTENED) == "env: prod"
    assert tag_string(tag, TagNameFormat.NONE) == "prod"

    bare = Tag(tag="database")
    assert tag_string(bare) == "database"
    assert tag_string(bare, TagNameFormat.SHORTENED) == "dat"
    assert tag_string(bare, TagNameFormat.NONE) == ""


def test_tags_are_sorted_by_name_then_value() -> None:
    entity = _entity(("b", "1"), ("a", "2"), ("a", "1"))
    out = make_tags([entity], TagFormatOptions(max_shown=10))
    assert _texts(out["1"]) == ["a: 1", "a: 2", "b: 1"]


def test_sorting_is_independent_of_input_order() -> None:
    pairs = [("service", "web"), ("app", "x"), ("env", "prod"), ("app", "a")]
    first = make_tags([_entity(*pairs)], TagFormatOptions(html=False))
    second = make_tags([_entity(*reversed(pairs))], TagFormatOptions(html=False))
    assert first == second


def test_filter_rule_equal_moves_match_first() -> None:
    entity = _entity(("env", "prod"), ("app", "x"))
    options = TagFormatOptions(filter_rules=[TagFilterRule(tag="env", operator=TagOperator.EQUAL, value="prod")])
    assert _texts(make_tags([entity], options)["1"]) == ["env: prod", "app: x"]


def test_filter_rule_like_is_case_insensitive_substring() -> None:
    tags = [Tag(tag="app", value="x"), Tag(tag="env", value="Production"), Tag(tag="env", value="test")]
    rules = [TagFilterRule(tag="env", operator=TagOperator.LIKE, value="PROD")]
    ordered = order_tags_by_filter(tags, rules)
    assert [t.value for t in ordered] == ["Production", "x", "test"]


def test_filter_rule_like_with_empty_value_matches_every_value() -> None:
    tags = [Tag(tag="app", value="x"), Tag(tag="env", value="a"), Tag(tag="env", value="b")]
    ordered = order_tags_by_filter(tags, [TagFilterRule(tag="env", value="")])
    assert [(t.tag, t.value) for t in ordered] == [("env", "a"), ("env", "b"), ("app", "x")]


def test_filter_ordering_does_not_mutate_input() -> None:
    tags = [Tag(tag="app", value="x"), Tag(tag="env", value="prod")]
    order_tags_by_filter(tags, [TagFilterRule(tag="env", operator=TagOperator.EQUAL, value="prod")])
    assert [t.tag for t in tags] == ["app", "env"]


def test_priority_names_come_first_in_given_order() -> None:
    entity = _entity(("app", "x"), ("env", "y"), ("sev", "z"))
    options = TagFormatOptions(priority=["sev", "env"])
    assert _texts(make_tags([entity], options)["1"]) == ["sev: z", "env: y", "app: x"]


def test_priority_applies_after_filter_reordering() -> None:
    tags = [Tag(tag="app", value="x"), Tag(tag="env", value="prod"), Tag(tag="sev", value="high")]
    filtered = order_tags_by_filter(tags, [TagFilterRule(tag="env", operator=TagOperator.EQUAL, value="prod")])
    ordered = order_tags_by_priority(filtered, ["sev"])
    assert [t.tag for t in ordered] == ["sev", "env", "app"]


def test_priority_accepts_comma_separated_string() -> None:
    options = TagFormatOptions(priority=" sev , env,, ")
    assert options.priority == ["sev", "env"]


def test_truncation_adds_overflow_with_all_tags() -> None:
    entity = _entity(("e", "5"), ("d", "4"), ("c", "3"), ("b", "2"), ("a", "1"))
    out = make_tags([entity], TagFormatOptions(max_shown=2, priority="c"))["1"]

    assert len(out) == 3
    assert _texts(out) == ["c: 3", "a: 1"]
    overflow = out[-1]
    assert isinstance(overflow, TagOverflow)
    # Expanded content is the sorted list, not the priority order.
    assert [t.text for t in overflow.tags] == ["a: 1", "b: 2", "c: 3", "d: 4", "e: 5"]
    assert all(t.hint == t.text for t in overflow.tags)


def test_no_overflow_when_everything_fits() -> None:
    out = make_tags([_entity(("a", "1"), ("b", "2"))], TagFormatOptions(max_shown=2))["1"]
    assert not any(isinstance(i, TagOverflow) for i in out)


def test_empty_renderings_are_skipped_and_not_counted() -> None:
    entity = _entity(("a", ""), ("b", "x"), ("c", "y"))
    out = make_tags([entity], TagFormatOptions(max_shown=2, name_format=TagNameFormat.NONE))["1"]
    assert _texts(out) == ["x", "y"]
    # Three tags, two shown: the full list is still offered.
    assert isinstance(out[-1], TagOverflow)


def test_shown_tags_carry_full_string_as_hint() -> None:
    entity = _entity(("environment", "prod"))
    out = make_tags([entity], TagFormatOptions(name_format=TagNameFormat.SHORTENED))["1"]
    assert out == [DisplayTag(text="env: prod", hint="environment: prod")]


def test_default_max_shown_comes_from_settings(settings) -> None:
    entity = _entity(("a", "1"), ("b", "2"), ("c", "3"), ("d", "4"))
    out = make_tags([entity], s=settings)["1"]
    assert len(_texts(out)) == settings.tag_count_default


def test_plain_mode_returns_every_tag_uncut() -> None:
    entity = _entity(("sev", "z"), ("app", "x"), ("env", "y"), ("a", ""), ("b", "1"))
    options = TagFormatOptions(
        html=False,
        max_shown=1,
        priority="sev",
        filter_rules=[TagFilterRule(tag="env", operator=TagOperator.EQUAL, value="y")],
    )
    out = make_tags([entity], options)["1"]
    assert out == ["a", "app: x", "b: 1", "env: y", "sev: z"]
    assert len(out) == len(entity.tags)


def test_duplicates_pass_through() -> None:
    entity = _entity(("a", "1"), ("a", "1"))
    assert make_tags([entity], TagFormatOptions(html=False))["1"] == ["a: 1", "a: 1"]


def test_entity_without_tags_maps_to_empty_list() -> None:
    assert make_tags([TaggedEntity(id=7)]) == {"7": []}


def test_entity_from_record_uses_given_key() -> None:
    record = {"triggerid": 42, "tags": [{"tag": "a", "value": "1"}]}
    entity = TaggedEntity.from_record(record, key="triggerid")
    assert entity.id == "42"
    assert entity.tags == [Tag(tag="a", value="1")]


def test_unknown_option_fields_are_rejected() -> None:
    with pytest.raises(ValidationError):
        TagFormatOptions(max_tags=2)


def test_max_shown_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        TagFormatOptions(max_shown=0)
