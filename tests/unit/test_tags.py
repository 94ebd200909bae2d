"""Tests for the declarative tag parser."""

import pytest

from adminforge.core.errors import MalformedAnnotation
from adminforge.core.tags import PRESENT, parse_tag


class TestParseTag:
    def test_empty_string(self) -> None:
        assert parse_tag("") == {}

    def test_whitespace_only(self) -> None:
        assert parse_tag("   ") == {}

    def test_key_value_and_flags(self) -> None:
        options = parse_tag("label=Title,list,Field=url")
        assert options == {"label": "Title", "list": PRESENT, "Field": "url"}

    def test_flag_is_present_marker(self) -> None:
        options = parse_tag("list")
        assert "list" in options
        assert options["list"] == PRESENT

    def test_strips_whitespace(self) -> None:
        assert parse_tag(" label = Blog title , list ") == {"label": "Blog title", "list": ""}

    def test_unknown_keys_preserved(self) -> None:
        options = parse_tag("min=1,max=10,custom=yes")
        assert options["custom"] == "yes"
        assert options["min"] == "1"

    def test_order_follows_tag(self) -> None:
        assert list(parse_tag("b=1,a,c=3")) == ["b", "a", "c"]


class TestMalformedTags:
    @pytest.mark.parametrize(
        "raw",
        [
            "label=Title,,list",
            ",list",
            "list,",
            "=Title",
            "label=",
            "label=a=b",
            "list,list",
            "label=a,label=b",
        ],
    )
    def test_rejected(self, raw: str) -> None:
        with pytest.raises(MalformedAnnotation):
            parse_tag(raw)

    def test_error_carries_tag(self) -> None:
        with pytest.raises(MalformedAnnotation) as exc_info:
            parse_tag("label=,list")
        assert exc_info.value.tag == "label=,list"
        assert "label" in str(exc_info.value)
