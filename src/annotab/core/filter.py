"""Pure functions for building Bitable filter formulas from equality conditions."""

from annotab.core.store import FilterCondition


def quote_value(value: str) -> str:
    """Quote a string literal for the formula language."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_condition_formula(condition: FilterCondition) -> str:
    """Build the formula for a single equality clause.

    Args:
        condition: The equality condition

    Returns:
        Formula such as ``CurrentValue.[id]="c1"``

    Raises:
        ValueError: If the field name cannot be referenced in a formula
    """
    if not condition.field or "[" in condition.field or "]" in condition.field:
        raise ValueError(f"Invalid field name for filter: {condition.field!r}")
    return f"CurrentValue.[{condition.field}]={quote_value(condition.value)}"


def build_filter_formula(conditions: list[FilterCondition] | None) -> str | None:
    """Combine conditions with AND.

    Returns None when there is nothing to filter on, so the search returns
    every row.
    """
    if not conditions:
        return None
    clauses = [build_condition_formula(condition) for condition in conditions]
    if len(clauses) == 1:
        return clauses[0]
    return f"AND({', '.join(clauses)})"
