"""
Tests for rankings and violation statistics
"""

import pytest

from extensions import db
from models import Week
from services.aggregation import (
    calculate_rankings, calculate_violation_stats, class_entries, week_ids_in_scope
)
from services.errors import ValidationError
from services.periods import create_year
from services.scoring import create_score_entry, delete_score_entry
from create_seed_data import CURRENT_YEAR_ID


def totals(rankings):
    return {row['class_id']: row['total_points'] for row in rankings}


@pytest.fixture
def october_weeks(ctx):
    """Four more weeks so the year spans two months of four weeks each"""
    for number in range(5, 9):
        db.session.add(Week(id=f'w{number}', month_id='m-oct', name=f'Tuần {number}', week_number=number))
    db.session.commit()


def test_week_ranking(duty_teacher):
    create_score_entry('w1', 'c1', 'v1', 3, duty_teacher)

    rankings = calculate_rankings('WEEK', 'w1')

    assert [(r['class_id'], r['total_points'], r['rank']) for r in rankings] == [
        ('c2', 100.0, 1),
        ('c3', 100.0, 2),
        ('c1', 92.5, 3),
    ]
    assert rankings[2]['class_name'] == '6A1'


def test_ties_keep_class_order(ctx):
    rankings = calculate_rankings('WEEK', 'w1')

    assert [r['class_id'] for r in rankings] == ['c1', 'c2', 'c3']
    assert [r['rank'] for r in rankings] == [1, 2, 3]


def test_base_points_apply_per_week(ctx):
    assert totals(calculate_rankings('MONTH', 'm-sep')) == {'c1': 400.0, 'c2': 400.0, 'c3': 400.0}
    assert totals(calculate_rankings('MONTH', 'm-oct')) == {'c1': 0.0, 'c2': 0.0, 'c3': 0.0}
    assert totals(calculate_rankings('WEEK', 'w1', base_points=50)) == {'c1': 50.0, 'c2': 50.0, 'c3': 50.0}


def test_year_total_is_sum_of_month_totals(duty_teacher, october_weeks):
    create_score_entry('w1', 'c1', 'v1', 2, duty_teacher)
    create_score_entry('w3', 'c2', 'v6', 1, duty_teacher)
    create_score_entry('w5', 'c1', 'v5', 1, duty_teacher)
    create_score_entry('w8', 'c3', 'v7', 3, duty_teacher)

    year = totals(calculate_rankings('YEAR', CURRENT_YEAR_ID))
    september = totals(calculate_rankings('MONTH', 'm-sep'))
    october = totals(calculate_rankings('MONTH', 'm-oct'))

    for class_id in ('c1', 'c2', 'c3'):
        assert year[class_id] == pytest.approx(september[class_id] + october[class_id])
    assert year == {'c1': 800.0, 'c2': 810.0, 'c3': 795.5}


def test_year_scope_follows_the_given_year(admin):
    other = create_year(admin, '2025-2026')

    assert week_ids_in_scope('YEAR', other.id) == []
    assert totals(calculate_rankings('YEAR', other.id)) == {'c1': 0.0, 'c2': 0.0, 'c3': 0.0}
    assert week_ids_in_scope('YEAR', CURRENT_YEAR_ID) == ['w1', 'w2', 'w3', 'w4']


def test_penalty_never_raises_a_total(duty_teacher):
    before = totals(calculate_rankings('MONTH', 'm-sep'))
    create_score_entry('w2', 'c2', 'v3', 1, duty_teacher)
    after = totals(calculate_rankings('MONTH', 'm-sep'))

    assert after['c2'] < before['c2']
    assert after['c1'] == before['c1']
    assert after['c3'] == before['c3']


def test_create_then_delete_restores_totals(duty_teacher):
    before = calculate_rankings('WEEK', 'w1')
    entry = create_score_entry('w1', 'c3', 'v8', 4, duty_teacher)
    delete_score_entry(entry.id, duty_teacher)

    assert calculate_rankings('WEEK', 'w1') == before


def test_unknown_period_type(ctx):
    with pytest.raises(ValidationError):
        calculate_rankings('DAY', 'w1')
    with pytest.raises(ValidationError):
        calculate_violation_stats('QUARTER', 'w1')


def test_violation_stats_ordering(duty_teacher):
    create_score_entry('w1', 'c1', 'v1', 3, duty_teacher)
    create_score_entry('w1', 'c2', 'v1', 1, duty_teacher)
    create_score_entry('w1', 'c1', 'v4', 1, duty_teacher)
    create_score_entry('w1', 'c3', 'v5', 2, duty_teacher)
    create_score_entry('w1', 'c2', 'v2', 1, duty_teacher)

    stats = calculate_violation_stats('WEEK', 'w1')

    assert [s['id'] for s in stats] == ['v1', 'v4', 'v2', 'v5', 'v3', 'v6', 'v7', 'v8']
    assert stats[0] == {
        'id': 'v1',
        'name': 'Đi học muộn',
        'base_points': -2.5,
        'frequency': 2,
        'total_students': 4,
        'total_points': -10.0,
    }
    assert stats[3]['total_points'] == 10.0
    assert all(s['frequency'] == 0 and s['total_points'] == 0 for s in stats[4:])


def test_violation_stats_respect_the_window(duty_teacher):
    create_score_entry('w1', 'c1', 'v2', 1, duty_teacher)
    create_score_entry('w4', 'c1', 'v2', 2, duty_teacher)

    week = {s['id']: s for s in calculate_violation_stats('WEEK', 'w4')}
    month = {s['id']: s for s in calculate_violation_stats('MONTH', 'm-sep')}

    assert week['v2']['frequency'] == 1
    assert week['v2']['total_students'] == 2
    assert month['v2']['frequency'] == 2
    assert month['v2']['total_points'] == -3.0


def test_class_entries(duty_teacher):
    create_score_entry('w1', 'c1', 'v1', 1, duty_teacher)
    create_score_entry('w2', 'c1', 'v2', 1, duty_teacher)
    create_score_entry('w2', 'c2', 'v2', 1, duty_teacher)

    assert len(class_entries('c1', 'MONTH', 'm-sep')) == 2
    assert len(class_entries('c1', 'WEEK', 'w2')) == 1
    assert class_entries('c3', 'YEAR', CURRENT_YEAR_ID) == []
