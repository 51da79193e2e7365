"""
services/accounts.py - Staff accounts: login check, password change, user management
"""

import logging

from flask import current_app

from extensions import db, bcrypt
from models import User, Role, AuditAction, TargetType
from services import audit
from services.errors import AuthError, ValidationError, ReferentialError
from services.permissions import require_admin
from services.transaction import atomic

logger = logging.getLogger(__name__)


def hash_password(password):
    return bcrypt.generate_password_hash(password).decode('utf-8')


def authenticate(username, password):
    """
    Check credentials.

    Returns the user even when is_first_login is set; the caller must make
    them change their password before starting a session.

    Raises:
        AuthError: unknown username or wrong password
    """
    username = (username or '').strip()
    user = User.query.filter_by(username=username).first() if username else None

    if user is None or not password or not bcrypt.check_password_hash(user.password, password):
        logger.warning('Failed login for username %r', username)
        raise AuthError('Invalid username or password.')

    return user


@atomic
def change_password(user, new_password, confirm_password):
    """
    Set a new password and clear the first-login flag.

    Raises:
        ValidationError: too short, or the two inputs differ
    """
    min_length = current_app.config['PASSWORD_MIN_LENGTH']
    new_password = new_password or ''

    if len(new_password) < min_length:
        raise ValidationError(f'New password must be at least {min_length} characters.')
    if new_password != confirm_password:
        raise ValidationError('Password confirmation does not match.')

    user.password = hash_password(new_password)
    user.is_first_login = False

    audit.record(user, AuditAction.UPDATE, TargetType.USER, user.id,
                 f'Changed password for {user.username}')
    logger.info('Password changed for %s', user.username)
    return user


def _validate_user_fields(name, role, username, exclude_id=None):
    if not (name or '').strip() or not (username or '').strip():
        raise ValidationError('Name and username are required.')
    if role not in Role.ALL:
        raise ValidationError(f'Unknown role: {role}')

    query = User.query.filter_by(username=username.strip())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ValidationError('Username already exists.')


@atomic
def create_user(actor, name, role, username, password, phone='', email=''):
    """Create a staff account; it must change its password on first login"""
    require_admin(actor, 'manage accounts')
    _validate_user_fields(name, role, username)
    if not password:
        raise ValidationError('An initial password is required.')

    user = User(
        name=name.strip(),
        role=role,
        username=username.strip(),
        password=hash_password(password),
        is_first_login=True,
        phone=phone or '',
        email=(email or '').strip().lower(),
    )
    db.session.add(user)
    db.session.flush()

    audit.record(actor, AuditAction.CREATE, TargetType.USER, user.id,
                 f'Created account {user.username} ({user.role})')
    return user


@atomic
def update_user(actor, user_id, name, role, username, phone='', email='', password=None):
    """Update an account's details; a new password is optional"""
    require_admin(actor, 'manage accounts')

    user = db.session.get(User, user_id)
    if user is None:
        raise ReferentialError(f'User {user_id} not found')
    _validate_user_fields(name, role, username, exclude_id=user.id)

    user.name = name.strip()
    user.role = role
    user.username = username.strip()
    user.phone = phone or ''
    user.email = (email or '').strip().lower()
    if password:
        user.password = hash_password(password)

    audit.record(actor, AuditAction.UPDATE, TargetType.USER, user.id,
                 f'Updated account {user.username}')
    return user


@atomic
def reset_password(actor, user_id):
    """
    Put an account back on DEFAULT_PASSWORD and force a password change at
    its next login.
    """
    require_admin(actor, 'reset passwords')

    user = db.session.get(User, user_id)
    if user is None:
        raise ReferentialError(f'User {user_id} not found')

    user.password = hash_password(current_app.config['DEFAULT_PASSWORD'])
    user.is_first_login = True

    audit.record(actor, AuditAction.UPDATE, TargetType.USER, user.id,
                 f'Reset password for {user.username}')
    logger.info('Password of %s reset by %s', user.username, actor.username)
    return user


@atomic
def delete_user(actor, user_id):
    """
    Delete an account.

    Raises:
        ValidationError: it is the last account, or the actor's own account
        ReferentialError: no such user
    """
    require_admin(actor, 'manage accounts')

    user = db.session.get(User, user_id)
    if user is None:
        raise ReferentialError(f'User {user_id} not found')
    if User.query.count() <= 1:
        raise ValidationError('The system must keep at least one account.')
    if actor.id == user.id:
        raise ValidationError('You cannot delete your own account.')

    username = user.username
    db.session.delete(user)

    audit.record(actor, AuditAction.DELETE, TargetType.USER, user_id,
                 f'Deleted account {username}')
    logger.info('Account %s deleted by %s', username, actor.username)


def list_users():
    return User.query.order_by(User.created_at, User.id).all()
