"""
services/errors.py - Errors raised by the scoring services

Every error is recoverable: routes turn them into JSON responses and the
service that raised it has already rolled back the session.
A lock override awaiting its reason is not an error; services return the
PendingAction instead.
"""


class ScoringError(Exception):
    """Base class for all service errors"""
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ScoringError):
    """Bad input: password rules, override reason length, missing fields"""
    status_code = 400


class AuthError(ScoringError):
    """Bad credentials"""
    status_code = 401


class PermissionDeniedError(ScoringError):
    """The actor's role may not perform this action at all"""
    status_code = 403


class ReferentialError(ScoringError):
    """The operation targets an entity that does not exist"""
    status_code = 404


class LockedError(ScoringError):
    """Mutation attempted on a locked period by a role that cannot override"""
    status_code = 423
