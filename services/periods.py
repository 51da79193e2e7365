"""
services/periods.py - School years, months, weeks, classes and violation categories

Admin-only management. References are never left dangling: a period that
still has children, or a week/class/category that still has score entries,
cannot be deleted.
"""

import logging

from flask import current_app

from extensions import db
from models import (
    SchoolYear, Month, Week, ClassRoom, ViolationCategory, ScoreEntry,
    SystemSettings, AuditAction, TargetType
)
from config import Config
from services import audit
from services.errors import ValidationError, ReferentialError
from services.permissions import require_admin
from services.scoring import round_points
from services.transaction import atomic

logger = logging.getLogger(__name__)


def _require_name(name, label='Name'):
    name = (name or '').strip()
    if not name:
        raise ValidationError(f'{label} is required.')
    return name


def _get_or_404(model, obj_id, label):
    obj = db.session.get(model, obj_id) if obj_id else None
    if obj is None:
        raise ReferentialError(f'{label} {obj_id} not found')
    return obj


# ============================================================================
# SCHOOL YEARS
# ============================================================================

def list_years():
    return SchoolYear.query.order_by(SchoolYear.created_at, SchoolYear.id).all()


def get_active_year():
    """
    The school year selected for year-scoped views
    Priority: Database setting > first stored year
    """
    year_id = SystemSettings.get_setting(Config.ACTIVE_YEAR_SETTING_KEY)
    year = db.session.get(SchoolYear, year_id) if year_id else None
    if year is None:
        year = SchoolYear.query.order_by(SchoolYear.created_at, SchoolYear.id).first()
    return year


@atomic
def set_active_year(actor, year_id):
    require_admin(actor, 'change the active school year')
    year = _get_or_404(SchoolYear, year_id, 'School year')
    SystemSettings.set_setting(Config.ACTIVE_YEAR_SETTING_KEY, year.id, actor.username)
    logger.info('Active school year set to %s by %s', year.name, actor.username)
    return year


@atomic
def create_year(actor, name):
    require_admin(actor, 'manage school years')
    year = SchoolYear(name=_require_name(name))
    db.session.add(year)
    db.session.flush()

    audit.record(actor, AuditAction.CREATE, TargetType.YEAR, year.id, f'Created school year {year.name}')
    return year


@atomic
def rename_year(actor, year_id, name):
    require_admin(actor, 'manage school years')
    year = _get_or_404(SchoolYear, year_id, 'School year')
    year.name = _require_name(name)

    audit.record(actor, AuditAction.UPDATE, TargetType.YEAR, year.id, f'Renamed school year to {year.name}')
    return year


@atomic
def delete_year(actor, year_id):
    """
    Delete a school year without months.

    The last remaining year cannot be deleted. Deleting the active year moves
    the active selection to a remaining year.
    """
    require_admin(actor, 'manage school years')
    year = _get_or_404(SchoolYear, year_id, 'School year')

    if SchoolYear.query.count() <= 1:
        raise ValidationError('There must be at least one school year.')
    if year.months.count():
        raise ValidationError('Delete the months of this school year first.')

    active = get_active_year()
    if active is not None and active.id == year.id:
        fallback = SchoolYear.query.filter(SchoolYear.id != year.id).order_by(
            SchoolYear.created_at, SchoolYear.id
        ).first()
        SystemSettings.set_setting(Config.ACTIVE_YEAR_SETTING_KEY, fallback.id, actor.username)
        logger.info('Active school year moved to %s', fallback.name)

    name = year.name
    db.session.delete(year)
    audit.record(actor, AuditAction.DELETE, TargetType.YEAR, year_id, f'Deleted school year {name}')


# ============================================================================
# MONTHS
# ============================================================================

def _validate_month_number(month_number):
    if isinstance(month_number, bool) or not isinstance(month_number, int) or not 1 <= month_number <= 12:
        raise ValidationError('Month number must be between 1 and 12.')


def list_months(school_year_id):
    return Month.query.filter_by(school_year_id=school_year_id).order_by(Month.created_at, Month.id).all()


@atomic
def create_month(actor, name, month_number, school_year_id=None):
    """Create a month under a school year (the active year by default)"""
    require_admin(actor, 'manage months')
    _validate_month_number(month_number)

    if school_year_id is None:
        year = get_active_year()
        if year is None:
            raise ReferentialError('No school year exists')
    else:
        year = _get_or_404(SchoolYear, school_year_id, 'School year')

    month = Month(school_year_id=year.id, name=_require_name(name), month_number=month_number)
    db.session.add(month)
    db.session.flush()

    audit.record(actor, AuditAction.CREATE, TargetType.MONTH, month.id,
                 f'Created month {month.name} in {year.name}')
    return month


@atomic
def update_month(actor, month_id, name, month_number):
    require_admin(actor, 'manage months')
    _validate_month_number(month_number)
    month = _get_or_404(Month, month_id, 'Month')

    month.name = _require_name(name)
    month.month_number = month_number

    audit.record(actor, AuditAction.UPDATE, TargetType.MONTH, month.id, f'Updated month {month.name}')
    return month


@atomic
def delete_month(actor, month_id):
    require_admin(actor, 'manage months')
    month = _get_or_404(Month, month_id, 'Month')
    if month.weeks.count():
        raise ValidationError('Delete the weeks of this month first.')

    name = month.name
    db.session.delete(month)
    audit.record(actor, AuditAction.DELETE, TargetType.MONTH, month_id, f'Deleted month {name}')


# ============================================================================
# WEEKS
# ============================================================================

def _validate_week_number(week_number):
    max_week = current_app.config['MAX_WEEK_NUMBER']
    if isinstance(week_number, bool) or not isinstance(week_number, int) or not 1 <= week_number <= max_week:
        raise ValidationError(f'Week number must be between 1 and {max_week}.')


def list_weeks(school_year_id):
    """Weeks of a school year, in week order"""
    return Week.query.join(Month, Week.month_id == Month.id).filter(
        Month.school_year_id == school_year_id
    ).order_by(Week.week_number, Week.id).all()


@atomic
def create_week(actor, name, month_id, week_number):
    require_admin(actor, 'manage weeks')
    _validate_week_number(week_number)
    month = _get_or_404(Month, month_id, 'Month')

    week = Week(month_id=month.id, name=_require_name(name), week_number=week_number)
    db.session.add(week)
    db.session.flush()

    audit.record(actor, AuditAction.CREATE, TargetType.WEEK, week.id,
                 f'Created week {week.name} in {month.name}')
    return week


@atomic
def update_week(actor, week_id, name, month_id, week_number):
    require_admin(actor, 'manage weeks')
    _validate_week_number(week_number)
    week = _get_or_404(Week, week_id, 'Week')
    month = _get_or_404(Month, month_id, 'Month')

    week.name = _require_name(name)
    week.month_id = month.id
    week.week_number = week_number

    audit.record(actor, AuditAction.UPDATE, TargetType.WEEK, week.id, f'Updated week {week.name}')
    return week


@atomic
def delete_week(actor, week_id):
    require_admin(actor, 'manage weeks')
    week = _get_or_404(Week, week_id, 'Week')
    if week.entries.count():
        raise ValidationError('This week has score entries and cannot be deleted.')

    name = week.name
    db.session.delete(week)
    audit.record(actor, AuditAction.DELETE, TargetType.WEEK, week_id, f'Deleted week {name}')


# ============================================================================
# CLASSES
# ============================================================================

def list_classes():
    return ClassRoom.query.order_by(ClassRoom.created_at, ClassRoom.id).all()


@atomic
def create_class(actor, name, grade):
    require_admin(actor, 'manage classes')
    classroom = ClassRoom(name=_require_name(name, 'Class name'), grade=grade)
    db.session.add(classroom)
    db.session.flush()

    audit.record(actor, AuditAction.CREATE, TargetType.CLASS, classroom.id, f'Created class {classroom.name}')
    return classroom


@atomic
def update_class(actor, class_id, name, grade):
    require_admin(actor, 'manage classes')
    classroom = _get_or_404(ClassRoom, class_id, 'Class')
    classroom.name = _require_name(name, 'Class name')
    classroom.grade = grade

    audit.record(actor, AuditAction.UPDATE, TargetType.CLASS, classroom.id, f'Updated class {classroom.name}')
    return classroom


@atomic
def delete_class(actor, class_id):
    require_admin(actor, 'manage classes')
    classroom = _get_or_404(ClassRoom, class_id, 'Class')
    if classroom.entries.count():
        raise ValidationError('This class has score entries and cannot be deleted.')

    name = classroom.name
    db.session.delete(classroom)
    audit.record(actor, AuditAction.DELETE, TargetType.CLASS, class_id, f'Deleted class {name}')


# ============================================================================
# VIOLATION CATEGORIES
# ============================================================================

def list_violations():
    return ViolationCategory.query.order_by(ViolationCategory.created_at, ViolationCategory.id).all()


@atomic
def create_violation(actor, name, points):
    require_admin(actor, 'manage violation categories')
    violation = ViolationCategory(name=_require_name(name), points=round_points(points))
    db.session.add(violation)
    db.session.flush()

    audit.record(actor, AuditAction.CREATE, TargetType.VIOLATION, violation.id,
                 f'Created category {violation.name} ({violation.points:.2f})')
    return violation


@atomic
def update_violation(actor, violation_id, name, points):
    """
    Rename a category or change its points.
    Entries already recorded keep the points they were created with.
    """
    require_admin(actor, 'manage violation categories')
    violation = _get_or_404(ViolationCategory, violation_id, 'Violation category')
    violation.name = _require_name(name)
    violation.points = round_points(points)

    audit.record(actor, AuditAction.UPDATE, TargetType.VIOLATION, violation.id,
                 f'Updated category {violation.name} ({violation.points:.2f})')
    return violation


@atomic
def delete_violation(actor, violation_id):
    require_admin(actor, 'manage violation categories')
    violation = _get_or_404(ViolationCategory, violation_id, 'Violation category')
    if ScoreEntry.query.filter_by(violation_id=violation.id).count():
        raise ValidationError('This category has score entries and cannot be deleted.')

    name = violation.name
    db.session.delete(violation)
    audit.record(actor, AuditAction.DELETE, TargetType.VIOLATION, violation_id, f'Deleted category {name}')
