"""
services/audit.py - Append-only audit trail
"""

from extensions import db
from models import AuditLog


def record(actor, action, target_type, target_id, details, reason=''):
    """
    Add an audit entry to the current session.

    The caller commits it together with the mutation it describes, so an
    audit row never exists without its action (or the reverse).

    Args:
        actor: User performing the action (None for system actions)
        action: AuditAction value
        target_type: TargetType value
        target_id: id of the affected row
        details: human-readable description
        reason: override justification, '' when none was required
    """
    log = AuditLog(
        actor_id=actor.id if actor is not None else '',
        actor_name=actor.name if actor is not None else '',
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
        reason=reason or '',
    )
    db.session.add(log)
    return log


def list_audit_logs(limit=None):
    """Audit entries, newest first"""
    query = AuditLog.query.order_by(AuditLog.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()
