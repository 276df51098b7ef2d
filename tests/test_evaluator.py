from datetime import datetime, timedelta

import pytest

from alarms.evaluator import evaluate, matches, next_fire_time
from conftest import MONDAY_7AM, SUNDAY_7AM, make_rule


def test_one_shot_matches_at_its_minute():
    rule = make_rule(hour=7, minute=0)
    assert evaluate(SUNDAY_7AM, [rule], ringing_active=False) is rule


def test_weekday_rule_skips_sunday_and_fires_monday():
    rule = make_rule(repeat=[1, 2, 3, 4, 5])
    assert evaluate(SUNDAY_7AM, [rule], ringing_active=False) is None
    assert evaluate(MONDAY_7AM, [rule], ringing_active=False) is rule


@pytest.mark.parametrize("offset_days", range(7))
def test_repeat_membership_decides_match(offset_days):
    now = SUNDAY_7AM + timedelta(days=offset_days)
    rule = make_rule(repeat=[offset_days])
    other = make_rule(repeat=[(offset_days + 1) % 7])
    assert matches(rule, now)
    assert not matches(other, now)


def test_disabled_rule_never_matches():
    rule = make_rule(is_enabled=False)
    assert evaluate(MONDAY_7AM, [rule], ringing_active=False) is None


@pytest.mark.parametrize("hour,minute", [(6, 59), (7, 1), (19, 0)])
def test_other_minutes_do_not_match(hour, minute):
    rule = make_rule(hour=hour, minute=minute)
    assert evaluate(MONDAY_7AM, [rule], ringing_active=False) is None


def test_nothing_matches_while_ringing():
    rules = [make_rule(), make_rule(repeat=[1])]
    assert evaluate(MONDAY_7AM, rules, ringing_active=True) is None


def test_first_match_in_order_wins():
    skipped = make_rule(is_enabled=False)
    first = make_rule(label="first")
    second = make_rule(label="second")
    assert evaluate(MONDAY_7AM, [skipped, first, second], ringing_active=False) is first
    assert evaluate(MONDAY_7AM, [second, first], ringing_active=False) is second


def test_next_fire_time_rolls_to_next_matching_day():
    rule = make_rule(hour=7, minute=0, repeat=[1])
    assert next_fire_time(rule, MONDAY_7AM) == MONDAY_7AM + timedelta(days=7)
    assert next_fire_time(rule, SUNDAY_7AM) == MONDAY_7AM


def test_next_fire_time_for_one_shot_later_today():
    rule = make_rule(hour=21, minute=30)
    assert next_fire_time(rule, MONDAY_7AM) == datetime(2025, 1, 6, 21, 30)
    assert next_fire_time(make_rule(is_enabled=False), MONDAY_7AM) is None
