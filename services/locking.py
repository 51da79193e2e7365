"""
services/locking.py - Lock hierarchy (year -> month -> week)

A week's effective lock state combines its own status with its month's and
its school year's. Locking a parent never rewrites the stored status of its
children.
"""

import logging

from extensions import db
from models import SchoolYear, Month, Week, Status, PeriodType, AuditAction, PendingAction
from services import audit
from services.errors import ValidationError, PermissionDeniedError, ReferentialError
from services.pending import register_pending
from services.transaction import atomic

logger = logging.getLogger(__name__)

LOCKABLE_MODELS = {
    PeriodType.WEEK: Week,
    PeriodType.MONTH: Month,
    PeriodType.YEAR: SchoolYear,
}


def is_locked(week_id):
    """
    Effective lock state of a week.

    A week whose week, month or school year cannot be resolved counts as
    locked.
    """
    week = db.session.get(Week, week_id) if week_id else None
    if week is None:
        return True

    month = db.session.get(Month, week.month_id)
    if month is None:
        return True

    year = db.session.get(SchoolYear, month.school_year_id)
    if year is None:
        return True

    return Status.LOCKED in (week.status, month.status, year.status)


def _get_target(target_type, target_id):
    model = LOCKABLE_MODELS.get(target_type)
    if model is None:
        raise ValidationError(f'Unknown period type: {target_type}')

    target = db.session.get(model, target_id) if target_id else None
    if target is None:
        raise ReferentialError(f'{target_type} {target_id} not found')
    return target


def apply_lock_status(target_type, target_id, new_status, actor, reason=''):
    """
    Store the new status and append the LOCK/UNLOCK audit entry.
    The caller commits.
    """
    target = _get_target(target_type, target_id)
    target.status = new_status

    audit.record(
        actor,
        AuditAction.LOCK if new_status == Status.LOCKED else AuditAction.UNLOCK,
        target_type,
        target.id,
        f'Changed {target_type} status to {new_status}',
        reason,
    )
    logger.info('%s %s set to %s by %s', target_type, target.id, new_status,
                actor.username if actor is not None else '-')
    return target


@atomic
def set_lock_status(target_type, target_id, new_status, actor):
    """
    Lock or unlock a week, month or school year.

    Locking takes effect immediately. Unlocking always waits for an override
    reason, even for admins, so it returns a PendingAction.

    Returns:
        The updated period, or the PendingAction for an unlock.

    Raises:
        ValidationError: unknown period type or status
        PermissionDeniedError: actor is not an admin
        ReferentialError: period does not exist
    """
    if new_status not in Status.ALL:
        raise ValidationError(f'Unknown status: {new_status}')

    if actor is None or not actor.is_admin():
        logger.warning('Lock change on %s %s denied for %s', target_type, target_id,
                       actor.username if actor is not None else 'anonymous')
        raise PermissionDeniedError('Only administrators can lock or unlock periods.')

    target = _get_target(target_type, target_id)

    if new_status == Status.OPEN:
        return register_pending(actor, PendingAction.LOCK_CHANGE, {
            'target_type': target_type,
            'target_id': target.id,
            'new_status': new_status,
        })

    return apply_lock_status(target_type, target.id, new_status, actor)
