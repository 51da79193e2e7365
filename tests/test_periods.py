"""
Tests for school year, month, week, class and category management
"""

import pytest

from extensions import db
from models import SchoolYear, Month, Week, ClassRoom, AuditAction, TargetType
from services import periods
from services.audit import list_audit_logs
from services.errors import ValidationError, PermissionDeniedError, ReferentialError
from services.scoring import create_score_entry
from create_seed_data import CURRENT_YEAR_ID


def test_active_year_defaults_to_seeded_year(ctx):
    assert periods.get_active_year().id == CURRENT_YEAR_ID


def test_set_active_year(admin, teacher):
    year = periods.create_year(admin, '2025-2026')

    periods.set_active_year(admin, year.id)
    assert periods.get_active_year().id == year.id

    with pytest.raises(PermissionDeniedError):
        periods.set_active_year(teacher, CURRENT_YEAR_ID)
    with pytest.raises(ReferentialError):
        periods.set_active_year(admin, 'missing')


def test_last_year_cannot_be_deleted(admin):
    with pytest.raises(ValidationError) as excinfo:
        periods.delete_year(admin, CURRENT_YEAR_ID)
    assert excinfo.value.message == 'There must be at least one school year.'


def test_year_with_months_cannot_be_deleted(admin):
    periods.create_year(admin, '2025-2026')

    with pytest.raises(ValidationError):
        periods.delete_year(admin, CURRENT_YEAR_ID)
    assert db.session.get(SchoolYear, CURRENT_YEAR_ID) is not None


def test_deleting_active_year_moves_the_selection(admin):
    year = periods.create_year(admin, '2025-2026')
    periods.set_active_year(admin, year.id)

    periods.delete_year(admin, year.id)

    assert db.session.get(SchoolYear, year.id) is None
    assert periods.get_active_year().id == CURRENT_YEAR_ID


def test_rename_year_is_audited(admin):
    periods.rename_year(admin, CURRENT_YEAR_ID, 'Năm học 2024-2025')

    log = list_audit_logs(limit=1)[0]
    assert log.action == AuditAction.UPDATE
    assert log.target_type == TargetType.YEAR
    assert db.session.get(SchoolYear, CURRENT_YEAR_ID).name == 'Năm học 2024-2025'


def test_months(admin):
    month = periods.create_month(admin, 'Tháng 11', 11)
    assert month.school_year_id == CURRENT_YEAR_ID
    assert [m.id for m in periods.list_months(CURRENT_YEAR_ID)][-1] == month.id

    with pytest.raises(ValidationError):
        periods.create_month(admin, 'Tháng 13', 13)
    with pytest.raises(ReferentialError):
        periods.create_month(admin, 'Tháng 11', 11, school_year_id='missing')

    periods.update_month(admin, month.id, 'Tháng Mười Một', 11)
    assert db.session.get(Month, month.id).name == 'Tháng Mười Một'


def test_month_with_weeks_cannot_be_deleted(admin):
    with pytest.raises(ValidationError):
        periods.delete_month(admin, 'm-sep')

    periods.delete_month(admin, 'm-oct')
    assert db.session.get(Month, 'm-oct') is None


def test_weeks(admin):
    week = periods.create_week(admin, 'Tuần 5', 'm-oct', 5)
    assert [w.id for w in periods.list_weeks(CURRENT_YEAR_ID)] == ['w1', 'w2', 'w3', 'w4', week.id]

    periods.create_week(admin, 'Tuần 35', 'm-oct', 35)
    with pytest.raises(ValidationError):
        periods.create_week(admin, 'Tuần 36', 'm-oct', 36)
    with pytest.raises(ValidationError):
        periods.create_week(admin, 'Tuần 0', 'm-oct', 0)
    with pytest.raises(ReferentialError):
        periods.create_week(admin, 'Tuần 6', 'missing', 6)

    moved = periods.update_week(admin, week.id, 'Tuần 5', 'm-sep', 5)
    assert moved.month_id == 'm-sep'


def test_week_with_entries_cannot_be_deleted(admin, duty_teacher):
    create_score_entry('w1', 'c1', 'v1', 1, duty_teacher)

    with pytest.raises(ValidationError):
        periods.delete_week(admin, 'w1')

    periods.delete_week(admin, 'w4')
    assert db.session.get(Week, 'w4') is None


def test_classes(admin, duty_teacher, teacher):
    classroom = periods.create_class(admin, '9A1', 9)
    assert [c.name for c in periods.list_classes()] == ['6A1', '7A1', '8A1', '9A1']

    log = list_audit_logs(limit=1)[0]
    assert (log.action, log.target_type, log.target_id) == (AuditAction.CREATE, TargetType.CLASS, classroom.id)

    periods.update_class(admin, classroom.id, '9A2', 9)
    assert db.session.get(ClassRoom, classroom.id).name == '9A2'

    with pytest.raises(PermissionDeniedError):
        periods.create_class(teacher, '9A3', 9)

    create_score_entry('w1', 'c1', 'v1', 1, duty_teacher)
    with pytest.raises(ValidationError):
        periods.delete_class(admin, 'c1')

    periods.delete_class(admin, classroom.id)
    assert db.session.get(ClassRoom, classroom.id) is None


def test_violation_categories(admin, duty_teacher):
    violation = periods.create_violation(admin, 'Quên sách vở', -1.005)
    assert violation.points == -1.01

    create_score_entry('w1', 'c1', 'v2', 1, duty_teacher)
    with pytest.raises(ValidationError):
        periods.delete_violation(admin, 'v2')

    periods.delete_violation(admin, violation.id)
    assert violation.id not in [v.id for v in periods.list_violations()]


def test_audit_log_is_newest_first(admin):
    periods.create_class(admin, '9A1', 9)
    periods.create_violation(admin, 'Ăn quà vặt', -1.0)
    periods.create_year(admin, '2025-2026')

    logs = list_audit_logs()
    assert [log.target_type for log in logs[:3]] == [TargetType.YEAR, TargetType.VIOLATION, TargetType.CLASS]
    assert len(list_audit_logs(limit=2)) == 2
