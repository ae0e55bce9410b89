"""
Tests for incident priority scoring
"""
import itertools

import pytest

from app.models.incident import Priority
from app.services.incident_service import calculate_priority, priority_score

SEVERITIES = {"critical": 4, "high": 3, "medium": 2, "low": 1, "catastrophic": 1}
CATEGORIES = {
    "injury": 3,
    "near_miss": 2,
    "property_damage": 2,
    "environmental": 2,
    "security": 1,
    "slip": 1,
}


def _expected(score):
    if score >= 12:
        return Priority.CRITICAL
    if score >= 8:
        return Priority.HIGH
    if score >= 4:
        return Priority.MEDIUM
    return Priority.LOW


@pytest.mark.parametrize("severity,category", list(itertools.product(SEVERITIES, CATEGORIES)))
def test_priority_table(severity, category):
    score = SEVERITIES[severity] * CATEGORIES[category]

    assert priority_score(severity, category) == score
    assert calculate_priority(severity, category) == _expected(score)


@pytest.mark.parametrize(
    "severity,category,expected",
    [
        ("critical", "injury", Priority.CRITICAL),
        ("high", "injury", Priority.HIGH),
        ("critical", "near_miss", Priority.HIGH),
        ("medium", "injury", Priority.MEDIUM),
        ("critical", "security", Priority.MEDIUM),
        ("high", "security", Priority.LOW),
        ("low", "injury", Priority.LOW),
    ],
)
def test_priority_examples(severity, category, expected):
    assert calculate_priority(severity, category) == expected


def test_high_injury_scores_nine():
    assert priority_score("high", "injury") == 9
    assert calculate_priority("high", "injury") == Priority.HIGH


def test_unknown_category_uses_weight_one():
    assert priority_score("medium", "slip") == 2
    assert calculate_priority("medium", "slip") == Priority.LOW
    assert calculate_priority("critical", "slip") == Priority.MEDIUM


def test_unknown_severity_uses_weight_one():
    assert priority_score("catastrophic", "injury") == 3
    assert calculate_priority("catastrophic", "injury") == Priority.LOW


def test_thresholds_are_inclusive():
    # 4 x 3 = 12, 4 x 2 = 8, 2 x 2 = 4
    assert calculate_priority("critical", "injury") == Priority.CRITICAL
    assert calculate_priority("critical", "environmental") == Priority.HIGH
    assert calculate_priority("medium", "near_miss") == Priority.MEDIUM


def test_priority_is_deterministic():
    assert {calculate_priority("high", "near_miss") for _ in range(5)} == {Priority.MEDIUM}
