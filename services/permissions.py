"""
services/permissions.py - Who may record or delete score entries
"""

from models import Role
from services.errors import PermissionDeniedError
from services.locking import is_locked


def can_edit_score(week_id, actor_role):
    """
    Whether a role may create or delete score entries in a week.

    Admins always may (through an override when the week is locked);
    duty teachers only while the week is unlocked; teachers and anonymous
    callers never.
    """
    if actor_role == Role.ADMIN:
        return True
    if actor_role == Role.DUTY_TEACHER:
        return not is_locked(week_id)
    return False


def require_admin(actor, action='manage this resource'):
    """Raise PermissionDeniedError unless the actor is an admin"""
    if actor is None or not actor.is_admin():
        raise PermissionDeniedError(f'Only administrators can {action}.')
