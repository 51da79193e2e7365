"""
services/aggregation.py - Class rankings and violation statistics

Read-only. Every class starts each week in scope with SCORE_BASE_POINTS,
then the points of its entries in that week are added on top.

The school year for YEAR windows is always the target id passed in; callers
that want "the active year" resolve it first and pass it explicitly.
"""

from collections import defaultdict

from flask import current_app

from models import ScoreEntry, Week, Month, ClassRoom, ViolationCategory, PeriodType
from services.errors import ValidationError
from services.scoring import round_points


def week_ids_in_scope(period_type, target_id):
    """
    Ids of the weeks a WEEK/MONTH/YEAR window covers, in week order.

    A WEEK window is the target id itself, whether or not the week exists.
    """
    if period_type == PeriodType.WEEK:
        return [target_id]

    if period_type == PeriodType.MONTH:
        weeks = Week.query.filter_by(month_id=target_id).order_by(Week.week_number, Week.id)
    elif period_type == PeriodType.YEAR:
        weeks = Week.query.join(Month, Week.month_id == Month.id).filter(
            Month.school_year_id == target_id
        ).order_by(Week.week_number, Week.id)
    else:
        raise ValidationError(f'Unknown period type: {period_type}')

    return [w.id for w in weeks.all()]


def _entries_in_weeks(week_ids):
    if not week_ids:
        return []
    return ScoreEntry.query.filter(ScoreEntry.week_id.in_(week_ids)).order_by(
        ScoreEntry.created_at, ScoreEntry.id
    ).all()


def calculate_rankings(period_type, target_id, base_points=None):
    """
    Rank all classes by total points over a week, month or school year.

    Args:
        period_type: 'WEEK', 'MONTH' or 'YEAR'
        target_id: week id, month id or school year id
        base_points: weekly starting allowance (defaults to SCORE_BASE_POINTS)

    Returns:
        list of dicts: class_id, class_name, total_points, rank.
        Sorted by total descending; equal totals keep class order.
    """
    if base_points is None:
        base_points = current_app.config['SCORE_BASE_POINTS']

    week_ids = week_ids_in_scope(period_type, target_id)

    # (class_id, week_id) -> sum of entry points
    week_sums = defaultdict(float)
    for entry in _entries_in_weeks(week_ids):
        week_sums[(entry.class_id, entry.week_id)] += entry.points

    rankings = []
    for cls in ClassRoom.query.order_by(ClassRoom.created_at, ClassRoom.id).all():
        total = 0
        for week_id in week_ids:
            total += base_points + week_sums.get((cls.id, week_id), 0)
        rankings.append({
            'class_id': cls.id,
            'class_name': cls.name,
            'total_points': round_points(total),
            'rank': 0,
        })

    rankings.sort(key=lambda item: item['total_points'], reverse=True)
    for index, item in enumerate(rankings):
        item['rank'] = index + 1

    return rankings


def calculate_violation_stats(period_type, target_id):
    """
    Frequency and point totals per violation category in a window.

    Categories without entries are included with zeros. Sorted by
    frequency descending, then total points ascending (heavier penalties
    first among equally frequent categories).

    Returns:
        list of dicts: id, name, base_points, frequency, total_students, total_points
    """
    entries = _entries_in_weeks(week_ids_in_scope(period_type, target_id))

    by_violation = defaultdict(list)
    for entry in entries:
        by_violation[entry.violation_id].append(entry)

    stats = []
    for violation in ViolationCategory.query.order_by(ViolationCategory.created_at, ViolationCategory.id).all():
        matched = by_violation.get(violation.id, [])
        stats.append({
            'id': violation.id,
            'name': violation.name,
            'base_points': violation.points,
            'frequency': len(matched),
            'total_students': sum(e.student_count for e in matched),
            'total_points': round_points(sum(e.points for e in matched)),
        })

    stats.sort(key=lambda item: (-item['frequency'], item['total_points']))
    return stats


def class_entries(class_id, period_type, target_id):
    """A class's entries within a window (detail view behind a ranking row)"""
    week_ids = week_ids_in_scope(period_type, target_id)
    return [e for e in _entries_in_weeks(week_ids) if e.class_id == class_id]
