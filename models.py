"""
models.py - Database Models for the discipline & merit scoreboard
School years, months and weeks form the lock hierarchy; score entries
record violations/merits per class and week; audit logs record every change.
"""

from extensions import db
from flask_login import UserMixin
from datetime import datetime
import json
import uuid


def generate_id():
    """Fresh string identity for new rows"""
    return uuid.uuid4().hex


class Role:
    ADMIN = 'ADMIN'
    DUTY_TEACHER = 'DUTY_TEACHER'  # Teacher on weekly duty, records scores
    TEACHER = 'TEACHER'            # Read-only staff

    ALL = (ADMIN, DUTY_TEACHER, TEACHER)


class Status:
    OPEN = 'OPEN'
    LOCKED = 'LOCKED'

    ALL = (OPEN, LOCKED)


class PeriodType:
    WEEK = 'WEEK'
    MONTH = 'MONTH'
    YEAR = 'YEAR'

    ALL = (WEEK, MONTH, YEAR)


class AuditAction:
    CREATE = 'CREATE'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'
    LOCK = 'LOCK'
    UNLOCK = 'UNLOCK'


class TargetType:
    SCORE = 'SCORE'
    WEEK = 'WEEK'
    MONTH = 'MONTH'
    YEAR = 'YEAR'
    CLASS = 'CLASS'
    VIOLATION = 'VIOLATION'
    USER = 'USER'


class User(UserMixin, db.Model):
    """
    Staff account - authentication and role for permission checks
    """
    __tablename__ = 'user'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # 'ADMIN', 'DUTY_TEACHER', 'TEACHER'
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)  # bcrypt hash
    is_first_login = db.Column(db.Boolean, nullable=False, default=True)
    phone = db.Column(db.String(32), nullable=False, default='')
    email = db.Column(db.String(120), nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # At most one override awaiting a reason per user
    pending_action = db.relationship('PendingAction', backref='actor', uselist=False, cascade='all, delete-orphan')

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'

    def is_admin(self):
        return self.role == Role.ADMIN

    def is_duty_teacher(self):
        return self.role == Role.DUTY_TEACHER

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role,
            'username': self.username,
            'is_first_login': self.is_first_login,
            'phone': self.phone,
            'email': self.email,
        }


class SchoolYear(db.Model):
    """
    School Year - top of the lock hierarchy
    Locking a year locks every month and week beneath it.
    """
    __tablename__ = 'school_year'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(50), nullable=False)  # "2024-2025"
    status = db.Column(db.String(10), nullable=False, default=Status.OPEN)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    months = db.relationship('Month', backref='school_year', lazy='dynamic',
                             order_by='Month.created_at')

    def __repr__(self):
        return f'<SchoolYear {self.name} ({self.status})>'

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'status': self.status}


class Month(db.Model):
    """
    Month - belongs to exactly one school year
    """
    __tablename__ = 'month'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    school_year_id = db.Column(db.String(36), db.ForeignKey('school_year.id'), nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)  # "Tháng 9"
    month_number = db.Column(db.Integer, nullable=False)  # 9, 10, 11, 12, 1, 2, ...
    status = db.Column(db.String(10), nullable=False, default=Status.OPEN)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    weeks = db.relationship('Week', backref='month', lazy='dynamic',
                            order_by='Week.week_number')

    def __repr__(self):
        return f'<Month {self.name} ({self.status})>'

    def to_dict(self):
        return {
            'id': self.id,
            'school_year_id': self.school_year_id,
            'name': self.name,
            'month_number': self.month_number,
            'status': self.status,
        }


class Week(db.Model):
    """
    Week - the unit score entries are recorded against
    """
    __tablename__ = 'week'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    month_id = db.Column(db.String(36), db.ForeignKey('month.id'), nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)  # "Tuần 1"
    week_number = db.Column(db.Integer, nullable=False)  # 1 to 35
    status = db.Column(db.String(10), nullable=False, default=Status.OPEN)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    entries = db.relationship('ScoreEntry', backref='week', lazy='dynamic')

    def __repr__(self):
        return f'<Week {self.name} ({self.status})>'

    def to_dict(self):
        return {
            'id': self.id,
            'month_id': self.month_id,
            'name': self.name,
            'week_number': self.week_number,
            'status': self.status,
        }


class ClassRoom(db.Model):
    """
    Class - competes in the rankings, persists across school years
    """
    __tablename__ = 'classroom'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(50), nullable=False)  # "6A1"
    grade = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    entries = db.relationship('ScoreEntry', backref='classroom', lazy='dynamic')

    def __repr__(self):
        return f'<ClassRoom {self.name}>'

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'grade': self.grade}


class ViolationCategory(db.Model):
    """
    Violation / merit category
    Negative points are penalties, positive points are merits.
    Editing points only affects entries created afterwards.
    """
    __tablename__ = 'violation_category'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(200), nullable=False)
    points = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    entries = db.relationship('ScoreEntry', backref='violation', lazy='dynamic')

    def __repr__(self):
        return f'<ViolationCategory {self.name} ({self.points})>'

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'points': self.points}


class ScoreEntry(db.Model):
    """
    Score Entry - one recorded violation/merit for a class in a week
    Immutable once created: points are a snapshot of the category's
    value at creation time multiplied by the student count.
    """
    __tablename__ = 'score_entry'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    week_id = db.Column(db.String(36), db.ForeignKey('week.id'), nullable=False, index=True)
    class_id = db.Column(db.String(36), db.ForeignKey('classroom.id'), nullable=False, index=True)
    violation_id = db.Column(db.String(36), db.ForeignKey('violation_category.id'), nullable=False, index=True)
    student_count = db.Column(db.Integer, nullable=False, default=1)
    points = db.Column(db.Float, nullable=False)
    note = db.Column(db.String(512), nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    created_by = db.Column(db.String(128), nullable=False)  # Display name of the recorder

    def __repr__(self):
        return f'<ScoreEntry {self.class_id} {self.points} (week {self.week_id})>'

    def to_dict(self):
        return {
            'id': self.id,
            'week_id': self.week_id,
            'class_id': self.class_id,
            'violation_id': self.violation_id,
            'student_count': self.student_count,
            'points': self.points,
            'note': self.note,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'created_by': self.created_by,
        }


class AuditLog(db.Model):
    """
    Audit Log - append-only trail of every mutating action
    The integer id is monotonic, so ordering by id descending is newest-first.
    Actor fields are copied, not linked, so entries outlive deleted users.
    """
    __tablename__ = 'audit_log'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    actor_id = db.Column(db.String(36), nullable=False, default='')
    actor_name = db.Column(db.String(128), nullable=False, default='')
    action = db.Column(db.String(10), nullable=False)  # CREATE, UPDATE, DELETE, LOCK, UNLOCK
    target_type = db.Column(db.String(20), nullable=False)  # SCORE, WEEK, MONTH, YEAR, CLASS, VIOLATION, USER
    target_id = db.Column(db.String(36), nullable=False)
    details = db.Column(db.Text, nullable=False, default='')
    reason = db.Column(db.Text, nullable=False, default='')

    def __repr__(self):
        return f'<AuditLog {self.action} {self.target_type}:{self.target_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'actor_id': self.actor_id,
            'actor_name': self.actor_name,
            'action': self.action,
            'target_type': self.target_type,
            'target_id': self.target_id,
            'details': self.details,
            'reason': self.reason,
        }


class PendingAction(db.Model):
    """
    Pending Action - a privileged mutation waiting for an override reason

    The action is stored as a tagged variant (kind + JSON payload) instead of
    a callback, so it survives between requests:
        CREATE_SCORE: {"week_id", "class_id", "violation_id", "student_count", "note"}
        DELETE_SCORE: {"entry_id"}
        LOCK_CHANGE:  {"target_type", "target_id", "new_status"}
    """
    __tablename__ = 'pending_action'

    CREATE_SCORE = 'CREATE_SCORE'
    DELETE_SCORE = 'DELETE_SCORE'
    LOCK_CHANGE = 'LOCK_CHANGE'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    actor_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False, unique=True)
    kind = db.Column(db.String(20), nullable=False)
    payload = db.Column(db.Text, nullable=False, default='{}')  # JSON string
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<PendingAction {self.kind} by {self.actor_id}>'

    def get_payload(self):
        """Parse and return the payload as dict"""
        if self.payload:
            return json.loads(self.payload)
        return {}

    def set_payload(self, payload_dict):
        """Set payload from dict"""
        self.payload = json.dumps(payload_dict)

    def to_dict(self):
        return {
            'id': self.id,
            'kind': self.kind,
            'payload': self.get_payload(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class SystemSettings(db.Model):
    """
    System-wide settings stored in database
    Holds the active school year selection.
    """
    __tablename__ = 'system_settings'

    id = db.Column(db.Integer, primary_key=True)
    setting_key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    setting_value = db.Column(db.String(200), nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = db.Column(db.String(128), nullable=True)  # Username of admin who updated

    def __repr__(self):
        return f'<SystemSettings {self.setting_key}={self.setting_value}>'

    @staticmethod
    def get_setting(key, default=None):
        """
        Get a setting value from database
        Returns default if not found
        """
        setting = SystemSettings.query.filter_by(setting_key=key).first()
        return setting.setting_value if setting else default

    @staticmethod
    def set_setting(key, value, updated_by=None):
        """
        Set a setting value in the current session
        Creates new setting if doesn't exist. The caller commits.
        """
        setting = SystemSettings.query.filter_by(setting_key=key).first()
        if setting:
            setting.setting_value = value
            setting.updated_at = datetime.utcnow()
            setting.updated_by = updated_by
        else:
            setting = SystemSettings(
                setting_key=key,
                setting_value=value,
                updated_by=updated_by
            )
            db.session.add(setting)
        return setting
