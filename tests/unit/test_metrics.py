"""Unit tests for the metric registry and value coercion."""

import math
from decimal import Decimal

import pytest

from moodgarden.services.metrics import (
    METRICS,
    LeaderboardCategory,
    coerce_metric,
    finite_or_zero,
    get_metric,
)


class TestCoerceMetric:
    def test_integers_pass_through(self):
        assert coerce_metric(7) == 7
        assert coerce_metric(-3) == -3

    def test_missing_is_zero(self):
        assert coerce_metric(None) == 0

    def test_bool_is_not_a_number(self):
        assert coerce_metric(True) == 0
        assert coerce_metric(False) == 0

    def test_numeric_strings_parse(self):
        assert coerce_metric("12") == 12
        assert coerce_metric(" 4.5 ") == 4.5

    def test_garbage_strings_are_zero(self):
        assert coerce_metric("abc") == 0
        assert coerce_metric("") == 0

    def test_decimal(self):
        assert coerce_metric(Decimal("10")) == 10
        assert isinstance(coerce_metric(Decimal("10")), int)
        assert coerce_metric(Decimal("2.5")) == 2.5

    def test_integral_float_becomes_int(self):
        value = coerce_metric(5.0)
        assert value == 5
        assert isinstance(value, int)

    def test_nan_is_zero(self):
        assert coerce_metric(float("nan")) == 0

    def test_infinity_survives(self):
        assert coerce_metric(float("inf")) == math.inf
        assert coerce_metric(float("-inf")) == -math.inf

    def test_unsupported_types_are_zero(self):
        assert coerce_metric([1, 2]) == 0
        assert coerce_metric({"level": 3}) == 0


class TestFiniteOrZero:
    def test_infinity_becomes_zero(self):
        assert finite_or_zero(float("inf")) == 0

    def test_finite_values_kept(self):
        assert finite_or_zero(42) == 42
        assert finite_or_zero("3") == 3


class TestRegistry:
    def test_every_category_registered(self):
        assert set(METRICS) == set(LeaderboardCategory)

    @pytest.mark.parametrize(
        "category,primary,secondary",
        [
            ("level", "level", "experience"),
            ("streak", "current_streak", "longest_streak"),
            ("elements", "total_elements", "rare_elements_found"),
        ],
    )
    def test_fields(self, category, primary, secondary):
        metric = get_metric(LeaderboardCategory(category))
        assert metric.primary_field == primary
        assert metric.secondary_field == secondary
        assert metric.order_by == (primary, secondary)

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            METRICS[LeaderboardCategory.level] = None  # type: ignore[index]

    def test_get_metric_accepts_raw_value(self):
        assert get_metric("streak") is METRICS[LeaderboardCategory.streak]

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            get_metric("karma")

    def test_extractors_never_raise(self):
        metric = get_metric(LeaderboardCategory.level)
        record = {"level": "not a number", "experience": object()}
        assert metric.score(record) == 0
        assert metric.tie_break(record) == 0
        assert metric.score({}) == 0
