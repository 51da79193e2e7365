"""
services/scoring.py - Recording and deleting score entries

Entries are immutable: a mistake is corrected by deleting the entry and
recording a new one, which leaves two audit entries behind.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from extensions import db
from models import (
    ScoreEntry, Week, ClassRoom, ViolationCategory, PendingAction,
    Role, AuditAction, TargetType
)
from services import audit
from services.errors import ValidationError, LockedError, PermissionDeniedError, ReferentialError
from services.locking import is_locked
from services.pending import register_pending
from services.permissions import can_edit_score
from services.transaction import atomic

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = 'This week is locked. Scores can no longer be changed.'


def round_points(value):
    """
    Round to 2 decimals, halves away from zero (2.675 -> 2.68, -0.125 -> -0.13).
    """
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def _check_week_access(week_id, actor):
    """
    Returns True when the mutation needs an override reason first.

    Raises:
        LockedError: week is locked and the actor is not an admin
        PermissionDeniedError: role may never record scores
    """
    role = actor.role if actor is not None else None
    locked = is_locked(week_id)

    if locked and role != Role.ADMIN:
        logger.warning('Score change in locked week %s rejected for %s', week_id,
                       actor.username if actor is not None else 'anonymous')
        raise LockedError(LOCKED_MESSAGE)

    if not can_edit_score(week_id, role):
        raise PermissionDeniedError('Your account cannot record or delete scores.')

    return locked


def check_references(week_id, class_id, violation_id):
    """Raise ReferentialError unless the week, class and category all exist"""
    if db.session.get(Week, week_id) is None:
        raise ReferentialError(f'Week {week_id} not found')
    if db.session.get(ClassRoom, class_id) is None:
        raise ReferentialError(f'Class {class_id} not found')
    if db.session.get(ViolationCategory, violation_id) is None:
        raise ReferentialError(f'Violation category {violation_id} not found')


def _class_name(class_id):
    classroom = db.session.get(ClassRoom, class_id)
    return classroom.name if classroom else class_id


def execute_create(week_id, class_id, violation_id, student_count, actor, note='', reason=''):
    """
    Store a new entry and its CREATE audit entry. The caller commits.
    """
    violation = db.session.get(ViolationCategory, violation_id)
    base_points = violation.points if violation else 0

    entry = ScoreEntry(
        week_id=week_id,
        class_id=class_id,
        violation_id=violation_id,
        student_count=student_count,
        points=round_points(base_points * student_count),
        note=note or '',
        created_by=actor.name if actor is not None else 'Unknown',
    )
    db.session.add(entry)
    db.session.flush()  # Assigns entry.id for the audit entry

    audit.record(
        actor,
        AuditAction.CREATE,
        TargetType.SCORE,
        entry.id,
        f'Added points: {entry.points:.2f} (count: {student_count}) for class {_class_name(class_id)}',
        reason,
    )
    logger.info('Score entry %s created: %.2f for class %s in week %s', entry.id, entry.points, class_id, week_id)
    return entry


def execute_delete(entry, actor, reason=''):
    """
    Remove an entry and append its DELETE audit entry. The caller commits.
    """
    class_name = _class_name(entry.class_id)
    db.session.delete(entry)

    audit.record(
        actor,
        AuditAction.DELETE,
        TargetType.SCORE,
        entry.id,
        f'Deleted points for class {class_name}',
        reason,
    )
    logger.info('Score entry %s deleted from week %s', entry.id, entry.week_id)
    return entry


@atomic
def create_score_entry(week_id, class_id, violation_id, student_count, actor, note=''):
    """
    Record a violation/merit for a class in a week.

    Returns:
        ScoreEntry when executed immediately, or PendingAction when an admin
        is writing into a locked week and must give a reason first.

    Raises:
        ValidationError: student_count is not a positive integer
        LockedError: week is locked and the actor is not an admin
        PermissionDeniedError: role may never record scores
        ReferentialError: week, class or category does not exist
    """
    if isinstance(student_count, bool) or not isinstance(student_count, int) or student_count < 1:
        raise ValidationError('Student count must be a positive whole number.')

    needs_override = _check_week_access(week_id, actor)
    check_references(week_id, class_id, violation_id)

    if needs_override:
        return register_pending(actor, PendingAction.CREATE_SCORE, {
            'week_id': week_id,
            'class_id': class_id,
            'violation_id': violation_id,
            'student_count': student_count,
            'note': note or '',
        })

    return execute_create(week_id, class_id, violation_id, student_count, actor, note)


@atomic
def delete_score_entry(entry_id, actor):
    """
    Delete a score entry, checked against the entry's own week.

    Returns:
        The deleted ScoreEntry, a PendingAction for an admin override,
        or None when the entry does not exist.
    """
    entry = db.session.get(ScoreEntry, entry_id) if entry_id else None
    if entry is None:
        return None

    if _check_week_access(entry.week_id, actor):
        return register_pending(actor, PendingAction.DELETE_SCORE, {'entry_id': entry.id})

    return execute_delete(entry, actor)


def list_week_entries(week_id):
    """Entries recorded in a week, oldest first"""
    return ScoreEntry.query.filter_by(week_id=week_id).order_by(
        ScoreEntry.created_at, ScoreEntry.id
    ).all()
