"""
blueprints/reports/routes.py - Reports Blueprint
Class rankings, violation statistics, per-class details and Excel exports.
"""

import io

from flask import Blueprint, request, jsonify, send_file
from flask_login import login_required
from config import Config
from models import PeriodType
from schemas import PeriodQuery, parse
from services.aggregation import calculate_rankings, calculate_violation_stats, class_entries
from services.errors import ValidationError
from services.export import export_rows, XLSX_MIMETYPE

reports_bp = Blueprint('reports', __name__)


def _period_args():
    """
    Read ?period= and ?target_id= from the query string
    YEAR defaults to the active school year; WEEK and MONTH need a target.
    """
    query = parse(PeriodQuery, request.args.to_dict())
    target_id = query.target_id

    if not target_id:
        if query.period != PeriodType.YEAR:
            raise ValidationError('target_id is required for WEEK and MONTH reports.')
        target_id = Config.get_active_school_year_id()

    return query.period, target_id


def _xlsx_response(rows, filename):
    return send_file(
        io.BytesIO(export_rows(rows)),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename
    )


@reports_bp.route('/rankings')
@login_required
def rankings():
    """Class rankings for a week, month or school year"""
    period, target_id = _period_args()
    return jsonify({
        'success': True,
        'period': period,
        'target_id': target_id,
        'rankings': calculate_rankings(period, target_id)
    })


@reports_bp.route('/violations')
@login_required
def violations():
    """How often each violation category occurred in the window"""
    period, target_id = _period_args()
    return jsonify({
        'success': True,
        'period': period,
        'target_id': target_id,
        'stats': calculate_violation_stats(period, target_id)
    })


@reports_bp.route('/classes/<class_id>/entries')
@login_required
def class_detail(class_id):
    """Entries behind one class's ranking row"""
    period, target_id = _period_args()
    entries = class_entries(class_id, period, target_id)
    return jsonify({
        'success': True,
        'class_id': class_id,
        'period': period,
        'target_id': target_id,
        'entries': [e.to_dict() for e in entries]
    })


@reports_bp.route('/rankings/export')
@login_required
def export_rankings():
    """Rankings as Rank_Week.xlsx / Rank_Month.xlsx / Rank_Year.xlsx"""
    period, target_id = _period_args()
    rows = calculate_rankings(period, target_id)
    return _xlsx_response(rows, f'Rank_{period.title()}.xlsx')


@reports_bp.route('/violations/export')
@login_required
def export_violations():
    """Violation statistics as Stats_<Period>.xlsx"""
    period, target_id = _period_args()
    rows = calculate_violation_stats(period, target_id)
    return _xlsx_response(rows, f'Stats_{period.title()}.xlsx')
