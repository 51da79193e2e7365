"""
blueprints/scores/routes.py - Scores Blueprint
Recording and deleting score entries, and confirming lock overrides.
"""

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from models import PendingAction
from schemas import ScoreEntryCreate, OverrideConfirm, parse
from services.locking import is_locked
from services.overrides import confirm_override, cancel_override
from services.pending import get_pending
from services.permissions import can_edit_score
from services.scoring import create_score_entry, delete_score_entry, list_week_entries

# Initialize the blueprint for score-related routes
scores_bp = Blueprint('scores', __name__)


def _pending_response(pending):
    """202: the action waits for an override reason"""
    return jsonify({
        'success': True,
        'pending': pending.to_dict(),
        'message': 'This period is locked. Provide a reason to continue.'
    }), 202


def _serialize(result):
    return result.to_dict() if result is not None else None


@scores_bp.route('/weeks/<week_id>/entries')
@login_required
def week_entries(week_id):
    """
    Entries of a week plus whether the current user may change them
    """
    entries = list_week_entries(week_id)
    return jsonify({
        'success': True,
        'week_id': week_id,
        'locked': is_locked(week_id),
        'can_edit': can_edit_score(week_id, current_user.role),
        'entries': [e.to_dict() for e in entries]
    })


@scores_bp.route('/entries', methods=['POST'])
@login_required
def create_entry():
    """
    Record a violation/merit
    201 with the entry, or 202 when an admin override needs a reason.
    """
    data = parse(ScoreEntryCreate, request.get_json(silent=True))
    result = create_score_entry(
        data.week_id,
        data.class_id,
        data.violation_id,
        data.student_count,
        current_user._get_current_object(),
        note=data.note,
    )

    if isinstance(result, PendingAction):
        return _pending_response(result)

    return jsonify({'success': True, 'entry': result.to_dict()}), 201


@scores_bp.route('/entries/<entry_id>', methods=['DELETE'])
@login_required
def delete_entry(entry_id):
    """Delete a score entry"""
    result = delete_score_entry(entry_id, current_user._get_current_object())

    if result is None:
        return jsonify({'success': False, 'error': 'Score entry not found'}), 404

    if isinstance(result, PendingAction):
        return _pending_response(result)

    return jsonify({'success': True, 'deleted_id': entry_id})


@scores_bp.route('/overrides/pending')
@login_required
def pending_override():
    """The action waiting for the current user's override reason, if any"""
    pending = get_pending(current_user._get_current_object())
    return jsonify({'success': True, 'pending': _serialize(pending)})


@scores_bp.route('/overrides/confirm', methods=['POST'])
@login_required
def confirm():
    """
    Run the pending action with a written reason
    A reason that is too short returns 400 and keeps the action pending.
    """
    data = parse(OverrideConfirm, request.get_json(silent=True))
    result = confirm_override(current_user._get_current_object(), data.reason)
    return jsonify({'success': True, 'result': _serialize(result)})


@scores_bp.route('/overrides/cancel', methods=['POST'])
@login_required
def cancel():
    """Discard the pending action"""
    cancelled = cancel_override(current_user._get_current_object())
    return jsonify({'success': True, 'cancelled': cancelled})
