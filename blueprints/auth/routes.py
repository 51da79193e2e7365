"""
blueprints/auth/routes.py - Authentication Blueprint
Handles staff login, the forced first-login password change, and logout.
"""

from flask import Blueprint, request, jsonify, session
from flask_login import login_user, logout_user, login_required, current_user
from extensions import db
from models import User
from schemas import LoginRequest, ChangePasswordRequest, parse
from services.accounts import authenticate, change_password
from services.errors import AuthError

# Create blueprint
auth_bp = Blueprint('auth', __name__)

# Session key holding the user who passed the password check but still
# has to replace their initial password
PASSWORD_CHANGE_KEY = 'password_change_user_id'


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Staff login
    First-time users are not logged in yet: they must change their password.
    """
    data = parse(LoginRequest, request.get_json(silent=True))
    user = authenticate(data.username, data.password)

    if user.is_first_login:
        session[PASSWORD_CHANGE_KEY] = user.id
        return jsonify({
            'success': True,
            'must_change_password': True,
            'message': 'Please choose a new password before continuing.'
        })

    session.pop(PASSWORD_CHANGE_KEY, None)
    login_user(user, remember=True)
    return jsonify({
        'success': True,
        'must_change_password': False,
        'user': user.to_dict()
    })


@auth_bp.route('/change-password', methods=['POST'])
def change_password_route():
    """
    Change password for the logged-in user, or for the user finishing
    their first login. Starts the session on success.
    """
    if current_user.is_authenticated:
        user = current_user._get_current_object()
    else:
        user_id = session.get(PASSWORD_CHANGE_KEY)
        user = db.session.get(User, user_id) if user_id else None
        if user is None:
            raise AuthError('Please log in first.')

    data = parse(ChangePasswordRequest, request.get_json(silent=True))
    change_password(user, data.new_password, data.confirm_password)

    session.pop(PASSWORD_CHANGE_KEY, None)
    login_user(user, remember=True)
    return jsonify({
        'success': True,
        'user': user.to_dict()
    })


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """
    Logout current user
    """
    logout_user()
    return jsonify({'success': True, 'message': 'You have been logged out successfully.'})


@auth_bp.route('/me')
@login_required
def me():
    """Current user's profile"""
    return jsonify({'success': True, 'user': current_user.to_dict()})
