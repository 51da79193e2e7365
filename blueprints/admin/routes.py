"""
blueprints/admin/routes.py - Admin Blueprint
Management of school years, months, weeks, classes, violation categories
and accounts; period locking; the audit log.
Lists used by the scoring screens are readable by every logged-in user.
"""

from functools import wraps

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from models import PendingAction
from schemas import (
    YearPayload, ActiveYearPayload, MonthPayload, WeekPayload, ClassPayload,
    ViolationPayload, UserPayload, LockChange, parse
)
from services import accounts, periods
from services.audit import list_audit_logs
from services.errors import PermissionDeniedError
from services.locking import set_lock_status

admin_bp = Blueprint('admin', __name__)


def admin_required(f):
    """Ensure only admins can access the route"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin():
            raise PermissionDeniedError('Access denied. Admins only.')
        return f(*args, **kwargs)
    return decorated_function


def _actor():
    return current_user._get_current_object()


def _payload(schema):
    return parse(schema, request.get_json(silent=True))


def _school_year_arg():
    """?school_year_id=, defaulting to the active year"""
    year_id = request.args.get('school_year_id')
    if year_id:
        return year_id
    year = periods.get_active_year()
    return year.id if year else None


# ============================================================================
# SCHOOL YEARS
# ============================================================================

@admin_bp.route('/years')
@login_required
def list_years():
    active = periods.get_active_year()
    return jsonify({
        'success': True,
        'active_year_id': active.id if active else None,
        'years': [y.to_dict() for y in periods.list_years()]
    })


@admin_bp.route('/years', methods=['POST'])
@admin_required
def create_year():
    data = _payload(YearPayload)
    year = periods.create_year(_actor(), data.name)
    return jsonify({'success': True, 'year': year.to_dict()}), 201


@admin_bp.route('/years/<year_id>', methods=['PUT'])
@admin_required
def update_year(year_id):
    data = _payload(YearPayload)
    year = periods.rename_year(_actor(), year_id, data.name)
    return jsonify({'success': True, 'year': year.to_dict()})


@admin_bp.route('/years/<year_id>', methods=['DELETE'])
@admin_required
def delete_year(year_id):
    periods.delete_year(_actor(), year_id)
    active = periods.get_active_year()
    return jsonify({'success': True, 'active_year_id': active.id if active else None})


@admin_bp.route('/active-year', methods=['POST'])
@admin_required
def set_active_year():
    data = _payload(ActiveYearPayload)
    year = periods.set_active_year(_actor(), data.school_year_id)
    return jsonify({'success': True, 'active_year_id': year.id})


# ============================================================================
# MONTHS
# ============================================================================

@admin_bp.route('/months')
@login_required
def list_months():
    months = periods.list_months(_school_year_arg())
    return jsonify({'success': True, 'months': [m.to_dict() for m in months]})


@admin_bp.route('/months', methods=['POST'])
@admin_required
def create_month():
    data = _payload(MonthPayload)
    month = periods.create_month(_actor(), data.name, data.month_number, data.school_year_id)
    return jsonify({'success': True, 'month': month.to_dict()}), 201


@admin_bp.route('/months/<month_id>', methods=['PUT'])
@admin_required
def update_month(month_id):
    data = _payload(MonthPayload)
    month = periods.update_month(_actor(), month_id, data.name, data.month_number)
    return jsonify({'success': True, 'month': month.to_dict()})


@admin_bp.route('/months/<month_id>', methods=['DELETE'])
@admin_required
def delete_month(month_id):
    periods.delete_month(_actor(), month_id)
    return jsonify({'success': True})


# ============================================================================
# WEEKS
# ============================================================================

@admin_bp.route('/weeks')
@login_required
def list_weeks():
    weeks = periods.list_weeks(_school_year_arg())
    return jsonify({'success': True, 'weeks': [w.to_dict() for w in weeks]})


@admin_bp.route('/weeks', methods=['POST'])
@admin_required
def create_week():
    data = _payload(WeekPayload)
    week = periods.create_week(_actor(), data.name, data.month_id, data.week_number)
    return jsonify({'success': True, 'week': week.to_dict()}), 201


@admin_bp.route('/weeks/<week_id>', methods=['PUT'])
@admin_required
def update_week(week_id):
    data = _payload(WeekPayload)
    week = periods.update_week(_actor(), week_id, data.name, data.month_id, data.week_number)
    return jsonify({'success': True, 'week': week.to_dict()})


@admin_bp.route('/weeks/<week_id>', methods=['DELETE'])
@admin_required
def delete_week(week_id):
    periods.delete_week(_actor(), week_id)
    return jsonify({'success': True})


# ============================================================================
# CLASSES
# ============================================================================

@admin_bp.route('/classes')
@login_required
def list_classes():
    return jsonify({'success': True, 'classes': [c.to_dict() for c in periods.list_classes()]})


@admin_bp.route('/classes', methods=['POST'])
@admin_required
def create_class():
    data = _payload(ClassPayload)
    classroom = periods.create_class(_actor(), data.name, data.grade)
    return jsonify({'success': True, 'class': classroom.to_dict()}), 201


@admin_bp.route('/classes/<class_id>', methods=['PUT'])
@admin_required
def update_class(class_id):
    data = _payload(ClassPayload)
    classroom = periods.update_class(_actor(), class_id, data.name, data.grade)
    return jsonify({'success': True, 'class': classroom.to_dict()})


@admin_bp.route('/classes/<class_id>', methods=['DELETE'])
@admin_required
def delete_class(class_id):
    periods.delete_class(_actor(), class_id)
    return jsonify({'success': True})


# ============================================================================
# VIOLATION CATEGORIES
# ============================================================================

@admin_bp.route('/violations')
@login_required
def list_violations():
    return jsonify({'success': True, 'violations': [v.to_dict() for v in periods.list_violations()]})


@admin_bp.route('/violations', methods=['POST'])
@admin_required
def create_violation():
    data = _payload(ViolationPayload)
    violation = periods.create_violation(_actor(), data.name, data.points)
    return jsonify({'success': True, 'violation': violation.to_dict()}), 201


@admin_bp.route('/violations/<violation_id>', methods=['PUT'])
@admin_required
def update_violation(violation_id):
    data = _payload(ViolationPayload)
    violation = periods.update_violation(_actor(), violation_id, data.name, data.points)
    return jsonify({'success': True, 'violation': violation.to_dict()})


@admin_bp.route('/violations/<violation_id>', methods=['DELETE'])
@admin_required
def delete_violation(violation_id):
    periods.delete_violation(_actor(), violation_id)
    return jsonify({'success': True})


# ============================================================================
# ACCOUNTS
# ============================================================================

@admin_bp.route('/users')
@admin_required
def list_users():
    return jsonify({'success': True, 'users': [u.to_dict() for u in accounts.list_users()]})


@admin_bp.route('/users', methods=['POST'])
@admin_required
def create_user():
    data = _payload(UserPayload)
    user = accounts.create_user(
        _actor(), data.name, data.role, data.username, data.password,
        phone=data.phone, email=data.email
    )
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@admin_bp.route('/users/<user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    data = _payload(UserPayload)
    user = accounts.update_user(
        _actor(), user_id, data.name, data.role, data.username,
        phone=data.phone, email=data.email, password=data.password
    )
    return jsonify({'success': True, 'user': user.to_dict()})


@admin_bp.route('/users/<user_id>/reset-password', methods=['POST'])
@admin_required
def reset_password(user_id):
    """Back to the default password; the user must change it at next login"""
    user = accounts.reset_password(_actor(), user_id)
    return jsonify({'success': True, 'user': user.to_dict()})


@admin_bp.route('/users/<user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    accounts.delete_user(_actor(), user_id)
    return jsonify({'success': True})


# ============================================================================
# LOCKS & AUDIT
# ============================================================================

@admin_bp.route('/locks', methods=['POST'])
@admin_required
def change_lock():
    """
    Lock takes effect immediately; unlock returns 202 and waits for a reason
    (confirm through /scores/overrides/confirm).
    """
    data = _payload(LockChange)
    result = set_lock_status(data.target_type, data.target_id, data.status, _actor())

    if isinstance(result, PendingAction):
        return jsonify({
            'success': True,
            'pending': result.to_dict(),
            'message': 'Unlocking requires a reason.'
        }), 202

    return jsonify({'success': True, 'target': result.to_dict()})


@admin_bp.route('/audit-logs')
@admin_required
def audit_logs():
    """Audit log, newest first (?limit=)"""
    limit = request.args.get('limit', type=int)
    return jsonify({'success': True, 'logs': [log.to_dict() for log in list_audit_logs(limit)]})
