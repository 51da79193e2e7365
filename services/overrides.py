"""
services/overrides.py - Confirming or cancelling actions that need a reason

Admin writes into locked weeks, and every unlock, are first stored as the
actor's PendingAction. They only run once a written reason of at least
OVERRIDE_REASON_MIN_LENGTH characters is supplied; the reason is stored on
the resulting audit entry.
"""

import logging

from flask import current_app

from extensions import db
from models import PendingAction, ScoreEntry
from services.errors import ValidationError
from services.locking import apply_lock_status
from services.pending import get_pending
from services.scoring import check_references, execute_create, execute_delete
from services.transaction import atomic

logger = logging.getLogger(__name__)


def _run_create(payload, actor, reason):
    # The week, class or category may have been deleted while the action waited
    check_references(payload['week_id'], payload['class_id'], payload['violation_id'])
    return execute_create(
        payload['week_id'],
        payload['class_id'],
        payload['violation_id'],
        payload['student_count'],
        actor,
        note=payload.get('note', ''),
        reason=reason,
    )


def _run_delete(payload, actor, reason):
    entry = db.session.get(ScoreEntry, payload['entry_id'])
    if entry is None:
        # Already gone: nothing to delete, nothing to audit
        return None
    return execute_delete(entry, actor, reason=reason)


def _run_lock_change(payload, actor, reason):
    return apply_lock_status(
        payload['target_type'],
        payload['target_id'],
        payload['new_status'],
        actor,
        reason=reason,
    )


DISPATCH = {
    PendingAction.CREATE_SCORE: _run_create,
    PendingAction.DELETE_SCORE: _run_delete,
    PendingAction.LOCK_CHANGE: _run_lock_change,
}


def validate_reason(reason):
    """Check the override reason length as typed; the text is stored unchanged"""
    reason = reason or ''
    min_length = current_app.config['OVERRIDE_REASON_MIN_LENGTH']
    if len(reason) < min_length:
        raise ValidationError(f'Reason must be at least {min_length} characters.')
    return reason


@atomic
def confirm_override(actor, reason):
    """
    Run the actor's pending action with the given reason.

    A reason that is too short leaves the pending action in place.

    Returns:
        Whatever the action produced: the new ScoreEntry, the deleted
        ScoreEntry (None if it had already disappeared), or the period
        whose lock changed.

    Raises:
        ValidationError: nothing is pending, or the reason is too short
        ReferentialError: what the action refers to no longer exists; the
            action stays pending
    """
    pending = get_pending(actor)
    if pending is None:
        raise ValidationError('There is no action awaiting confirmation.')

    reason = validate_reason(reason)

    handler = DISPATCH.get(pending.kind)
    if handler is None:
        raise ValidationError(f'Unknown pending action: {pending.kind}')

    result = handler(pending.get_payload(), actor, reason)
    db.session.delete(pending)
    logger.info('Override %s confirmed by %s', pending.kind, actor.username)
    return result


@atomic
def cancel_override(actor):
    """
    Discard the actor's pending action without running it.
    Returns True when something was discarded.
    """
    pending = get_pending(actor)
    if pending is None:
        return False

    db.session.delete(pending)
    logger.info('Override %s cancelled by %s', pending.kind, actor.username)
    return True
