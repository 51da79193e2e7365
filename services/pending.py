"""
services/pending.py - Registering actions that wait for an override reason
"""

import logging
from datetime import datetime

from extensions import db
from models import PendingAction

logger = logging.getLogger(__name__)


def register_pending(actor, kind, payload):
    """
    Capture a privileged action as the actor's pending action.

    Each actor holds at most one pending action; registering a new one
    replaces whatever was waiting before. The caller commits.
    """
    pending = PendingAction.query.filter_by(actor_id=actor.id).first()
    if pending is None:
        pending = PendingAction(actor_id=actor.id)
        db.session.add(pending)
    else:
        logger.info('Replacing pending %s for %s', pending.kind, actor.username)
        pending.created_at = datetime.utcnow()

    pending.kind = kind
    pending.set_payload(payload)
    logger.info('Registered pending %s for %s, awaiting override reason', kind, actor.username)
    return pending


def get_pending(actor):
    """The actor's pending action, or None"""
    if actor is None:
        return None
    return PendingAction.query.filter_by(actor_id=actor.id).first()
