"""Tests for filter formula builder pure functions."""

import pytest

from annotab.core.filter import build_condition_formula, build_filter_formula, quote_value
from annotab.core.store import FilterCondition, equals


class TestQuoteValue:
    """Tests for quote_value function."""

    def test_plain_value_is_wrapped_in_quotes(self):
        assert quote_value("c1") == '"c1"'

    def test_double_quotes_are_escaped(self):
        assert quote_value('say "hi"') == '"say \\"hi\\""'

    def test_backslashes_are_escaped_before_quotes(self):
        assert quote_value('a\\"b') == '"a\\\\\\"b"'

    def test_url_passes_through(self):
        assert quote_value("https://x/doc?a=1&b=2") == '"https://x/doc?a=1&b=2"'


class TestBuildConditionFormula:
    """Tests for build_condition_formula function."""

    def test_equality_clause(self):
        condition = FilterCondition(field="id", value="c1")
        assert build_condition_formula(condition) == 'CurrentValue.[id]="c1"'

    @pytest.mark.parametrize("field", ["", "a]b", "[id"])
    def test_invalid_field_name_raises(self, field):
        with pytest.raises(ValueError, match="Invalid field name"):
            build_condition_formula(FilterCondition(field=field, value="x"))


class TestBuildFilterFormula:
    """Tests for build_filter_formula function."""

    def test_no_conditions_returns_none(self):
        assert build_filter_formula(None) is None
        assert build_filter_formula([]) is None

    def test_single_condition_is_not_wrapped(self):
        assert build_filter_formula(equals(parentId="c1")) == 'CurrentValue.[parentId]="c1"'

    def test_multiple_conditions_use_and(self):
        formula = build_filter_formula(equals(projectId="p1", pageUrl="https://x/doc"))
        assert formula == 'AND(CurrentValue.[projectId]="p1", CurrentValue.[pageUrl]="https://x/doc")'

    def test_condition_order_is_preserved(self):
        formula = build_filter_formula(equals(id="c1", type="THREAD"))
        assert formula == 'AND(CurrentValue.[id]="c1", CurrentValue.[type]="THREAD")'
