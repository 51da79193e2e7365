"""
services/transaction.py - One commit per service call
"""

from functools import wraps

from extensions import db


def atomic(f):
    """
    Commit the session once the wrapped service returns; roll back if it raises.

    Mutation and audit entry are added to the same session, so they are
    committed together or not at all.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            result = f(*args, **kwargs)
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            raise
    return decorated_function
