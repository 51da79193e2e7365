import pytest

from extensions import db
from models import User, Role, AuditAction, TargetType
from services.accounts import (
    authenticate, change_password, create_user, update_user, delete_user, list_users,
    reset_password
)
from services.audit import list_audit_logs
from services.errors import AuthError, ValidationError, PermissionDeniedError, ReferentialError


def test_authenticate(ctx):
    user = authenticate('admin', 'Demo@123')
    assert user.id == 'u1'
    assert user.is_first_login is True

    # Passwords are stored hashed
    assert user.password != 'Demo@123'


@pytest.mark.parametrize('username,password', [
    ('admin', 'wrong'),
    ('admin', ''),
    ('nobody', '123'),
    ('', ''),
    (None, None),
])
def test_authenticate_rejects_bad_credentials(ctx, username, password):
    with pytest.raises(AuthError) as excinfo:
        authenticate(username, password)
    assert excinfo.value.message == 'Invalid username or password.'


def test_change_password(teacher):
    change_password(teacher, 'Secret1', 'Secret1')

    assert teacher.is_first_login is False
    assert authenticate('gv1', 'Secret1').id == teacher.id
    with pytest.raises(AuthError):
        authenticate('gv1', '123')

    log = list_audit_logs(limit=1)[0]
    assert log.action == AuditAction.UPDATE
    assert log.target_type == TargetType.USER


def test_change_password_rules(teacher):
    with pytest.raises(ValidationError):
        change_password(teacher, '12345', '12345')
    with pytest.raises(ValidationError):
        change_password(teacher, 'Secret1', 'Secret2')

    assert db.session.get(User, teacher.id).is_first_login is True


def test_create_user(admin):
    user = create_user(admin, 'Lê Văn C', Role.DUTY_TEACHER, 'gvtt2', 'Start123', email='C@School.edu.vn')

    assert user.is_first_login is True
    assert user.email == 'c@school.edu.vn'
    assert authenticate('gvtt2', 'Start123').id == user.id
    assert [u.username for u in list_users()][-1] == 'gvtt2'


def test_create_user_validation(admin, teacher):
    with pytest.raises(ValidationError):
        create_user(admin, 'Duplicate', Role.TEACHER, 'gv1', 'x1234567')
    with pytest.raises(ValidationError):
        create_user(admin, 'Someone', 'PRINCIPAL', 'p1', 'x1234567')
    with pytest.raises(ValidationError):
        create_user(admin, 'Someone', Role.TEACHER, 'p1', '')
    with pytest.raises(PermissionDeniedError):
        create_user(teacher, 'Someone', Role.TEACHER, 'p1', 'x1234567')

    assert User.query.count() == 3


def test_update_user(admin):
    user = update_user(admin, 'u3', 'Trần Thị B', Role.DUTY_TEACHER, 'gv1')
    assert user.role == Role.DUTY_TEACHER

    with pytest.raises(ValidationError):
        update_user(admin, 'u3', 'Trần Thị B', Role.TEACHER, 'admin')
    with pytest.raises(ReferentialError):
        update_user(admin, 'missing', 'X', Role.TEACHER, 'x')


def test_delete_user(admin):
    delete_user(admin, 'u3')

    assert db.session.get(User, 'u3') is None
    log = list_audit_logs(limit=1)[0]
    assert log.action == AuditAction.DELETE
    assert log.target_id == 'u3'


def test_cannot_delete_own_account(admin):
    with pytest.raises(ValidationError) as excinfo:
        delete_user(admin, 'u1')
    assert excinfo.value.message == 'You cannot delete your own account.'


def test_last_account_cannot_be_deleted(admin):
    delete_user(admin, 'u2')
    delete_user(admin, 'u3')

    with pytest.raises(ValidationError) as excinfo:
        delete_user(admin, 'u1')
    assert excinfo.value.message == 'The system must keep at least one account.'
    assert User.query.count() == 1


def test_reset_password(admin, teacher):
    change_password(teacher, 'Secret1', 'Secret1')

    user = reset_password(admin, teacher.id)

    assert user.is_first_login is True
    assert authenticate('gv1', 'Demo@123').id == teacher.id
    with pytest.raises(AuthError):
        authenticate('gv1', 'Secret1')

    log = list_audit_logs(limit=1)[0]
    assert (log.action, log.target_type, log.target_id) == (AuditAction.UPDATE, TargetType.USER, teacher.id)
    assert log.actor_id == admin.id


def test_reset_password_is_admin_only(admin, duty_teacher):
    with pytest.raises(PermissionDeniedError):
        reset_password(duty_teacher, 'u3')
    with pytest.raises(ReferentialError):
        reset_password(admin, 'missing')
