"""Unit tests for spending pattern analysis"""

from datetime import datetime, timedelta

import pytest

from conftest import make_transaction
from insight_engine.domain.patterns import (
    DECREASING,
    INCREASING,
    STABLE,
    analyze_spending_patterns,
    calculate_trend,
    detect_outliers,
    monthly_totals,
    spending_statistics,
)


def test_trend_increasing_when_second_half_grows():
    assert calculate_trend([10, 10, 10, 50, 50, 50]) == INCREASING


def test_trend_decreasing_and_stable():
    assert calculate_trend([50, 50, 50, 10, 10, 10]) == DECREASING
    assert calculate_trend([100, 102, 98, 101]) == STABLE


def test_trend_needs_minimum_points():
    assert calculate_trend([]) == STABLE
    assert calculate_trend([10, 100]) == STABLE


def test_trend_odd_length_puts_extra_point_in_first_half():
    """Test [10, 10 | 12]: 20% growth, while [10 | 10, 12] would be 10%"""
    assert calculate_trend([10, 10, 12]) == INCREASING


def test_trend_from_zero_baseline():
    assert calculate_trend([0, 0, 5, 5]) == INCREASING
    assert calculate_trend([0, 0, 0, 0]) == STABLE


def test_trend_custom_threshold():
    assert calculate_trend([100, 100, 115, 115], threshold=0.2) == STABLE
    assert calculate_trend([100, 100, 115, 115], threshold=0.1) == INCREASING


def test_patterns_per_category(sample_transactions):
    patterns = analyze_spending_patterns(sample_transactions)

    assert [p.category for p in patterns] == ["Groceries", "Food & Dining"]

    groceries = patterns[0]
    assert groceries.transaction_count == 12
    assert groceries.total_spent == pytest.approx(960.0)
    assert groceries.average_amount == pytest.approx(80.0)
    assert groceries.frequency == pytest.approx(12 / 11)
    assert groceries.trend == STABLE
    assert groceries.last_transaction_date == datetime(2024, 1, 1) + timedelta(days=77)

    coffee = patterns[1]
    assert coffee.transaction_count == 42
    assert coffee.frequency > 2.0


def test_patterns_exclude_income_and_group_uncategorized():
    day = datetime(2024, 2, 1)
    transactions = [
        make_transaction("i1", "Payroll", 2000.0, day, type="income"),
        make_transaction("e1", "Mystery Shop", 30.0, day),
        {"id": "e2", "name": "Corner Deli", "amount": 10.0, "type": "expense", "category": ""},
    ]

    patterns = analyze_spending_patterns(transactions)

    assert len(patterns) == 1
    assert patterns[0].category == "Uncategorized"
    assert patterns[0].transaction_count == 2
    assert patterns[0].frequency == 2.0
    assert patterns[0].last_transaction_date == day


def test_single_transaction_frequency_floor():
    patterns = analyze_spending_patterns([make_transaction("t", "Cinema", 12.0, datetime(2024, 1, 1), category="Fun")])

    assert patterns[0].frequency == 1.0
    assert patterns[0].trend == STABLE


def test_empty_input():
    assert analyze_spending_patterns([]) == []
    assert analyze_spending_patterns(None) == []
    assert detect_outliers([]) == []
    assert monthly_totals(None) == []


def test_spending_statistics():
    assert spending_statistics([]) == (0.0, 0.0)
    assert spending_statistics([7]) == (7.0, 0.0)
    assert spending_statistics([2, 4]) == (3.0, 1.0)


def test_detect_outliers():
    day = datetime(2024, 1, 1)
    transactions = [make_transaction(f"t{i}", "Lunch", 10.0, day) for i in range(9)]
    transactions.append(make_transaction("big", "Laptop", 1000.0, day))

    outliers = detect_outliers(transactions)

    assert [t.id for t in outliers] == ["big"]


def test_no_outliers_when_amounts_identical():
    day = datetime(2024, 1, 1)
    transactions = [make_transaction(f"t{i}", "Lunch", 10.0, day) for i in range(5)]

    assert detect_outliers(transactions) == []


def test_monthly_totals():
    transactions = [
        make_transaction("a", "Rent", 1000.0, datetime(2024, 2, 1)),
        make_transaction("b", "Food", 50.0, datetime(2024, 1, 20)),
        make_transaction("c", "Food", 25.0, datetime(2024, 2, 10)),
        make_transaction("d", "Salary", 3000.0, datetime(2024, 2, 1), type="income"),
    ]

    assert monthly_totals(transactions) == [("2024-01", 50.0), ("2024-02", 1025.0)]
