"""
create_seed_data.py - Bootstrap a fresh database
Creates the tables and the reference accounts, school year, months, weeks,
classes and violation categories.

Usage: python create_seed_data.py
"""

from datetime import datetime, timedelta

from app import create_app
from extensions import db, bcrypt
from models import (
    User, SchoolYear, Month, Week, ClassRoom, ViolationCategory,
    SystemSettings, Role, Status
)
from config import Config

CURRENT_YEAR_ID = 'sy-2024-2025'

SEED_USERS = [
    {'id': 'u1', 'name': 'Admin Hệ Thống', 'role': Role.ADMIN, 'username': 'admin',
     'password': 'Demo@123', 'phone': '0901234567', 'email': 'admin@school.edu.vn'},
    {'id': 'u2', 'name': 'Nguyễn Văn A', 'role': Role.DUTY_TEACHER, 'username': 'gvtt1',
     'password': '123', 'phone': '0912345678', 'email': 'vanna@school.edu.vn'},
    {'id': 'u3', 'name': 'Trần Thị B', 'role': Role.TEACHER, 'username': 'gv1',
     'password': '123', 'phone': '0923456789', 'email': 'thib@school.edu.vn'},
]

SEED_SCHOOL_YEAR = {'id': CURRENT_YEAR_ID, 'name': '2024-2025'}

SEED_MONTHS = [
    {'id': 'm-sep', 'name': 'Tháng 9', 'month_number': 9},
    {'id': 'm-oct', 'name': 'Tháng 10', 'month_number': 10},
]

SEED_WEEKS = [
    {'id': 'w1', 'month_id': 'm-sep', 'name': 'Tuần 1', 'week_number': 1},
    {'id': 'w2', 'month_id': 'm-sep', 'name': 'Tuần 2', 'week_number': 2},
    {'id': 'w3', 'month_id': 'm-sep', 'name': 'Tuần 3', 'week_number': 3},
    {'id': 'w4', 'month_id': 'm-sep', 'name': 'Tuần 4', 'week_number': 4},
]

SEED_CLASSES = [
    {'id': 'c1', 'name': '6A1', 'grade': 6},
    {'id': 'c2', 'name': '7A1', 'grade': 7},
    {'id': 'c3', 'name': '8A1', 'grade': 8},
]

SEED_VIOLATIONS = [
    {'id': 'v1', 'name': 'Đi học muộn', 'points': -2.5},
    {'id': 'v2', 'name': 'Không đeo khăn quàng', 'points': -1.0},
    {'id': 'v3', 'name': 'Nói chuyện trong giờ', 'points': -2.0},
    {'id': 'v4', 'name': 'Vệ sinh lớp kém', 'points': -5.0},
    {'id': 'v5', 'name': 'Trực nhật tốt (Cộng)', 'points': 5.0},
    {'id': 'v6', 'name': 'Đạt giải HSG cấp trường (Cộng)', 'points': 10.0},
    {'id': 'v7', 'name': 'Vi phạm đồng phục', 'points': -1.5},
    {'id': 'v8', 'name': 'Mất trật tự hành lang', 'points': -3.0},
]


def seed_database():
    """
    Insert the reference data into an empty database (inside an app context).

    Rows get increasing created_at values so list order, and ranking tie
    order, follow the order above. They are stamped a minute back so rows
    created afterwards always sort after them.
    """
    started = datetime.utcnow() - timedelta(minutes=1)

    def stamp(index):
        return started + timedelta(milliseconds=index)

    for i, data in enumerate(SEED_USERS):
        user = User(
            id=data['id'],
            name=data['name'],
            role=data['role'],
            username=data['username'],
            password=bcrypt.generate_password_hash(data['password']).decode('utf-8'),
            is_first_login=True,
            phone=data['phone'],
            email=data['email'],
            created_at=stamp(i)
        )
        db.session.add(user)

    db.session.add(SchoolYear(status=Status.OPEN, created_at=stamp(0), **SEED_SCHOOL_YEAR))

    for i, data in enumerate(SEED_MONTHS):
        db.session.add(Month(school_year_id=CURRENT_YEAR_ID, status=Status.OPEN, created_at=stamp(i), **data))

    for i, data in enumerate(SEED_WEEKS):
        db.session.add(Week(status=Status.OPEN, created_at=stamp(i), **data))

    for i, data in enumerate(SEED_CLASSES):
        db.session.add(ClassRoom(created_at=stamp(i), **data))

    for i, data in enumerate(SEED_VIOLATIONS):
        db.session.add(ViolationCategory(created_at=stamp(i), **data))

    SystemSettings.set_setting(Config.ACTIVE_YEAR_SETTING_KEY, CURRENT_YEAR_ID, 'seed')
    db.session.commit()


def create_seed_data():
    """Create tables and seed them unless accounts already exist"""
    app = create_app('development')

    with app.app_context():
        db.create_all()

        if User.query.count():
            print("❌ Database already contains accounts, nothing seeded.")
            return

        seed_database()

        print("✅ Seed data created successfully!")
        print("-" * 50)
        print("Login credentials (change on first login):")
        for data in SEED_USERS:
            print(f"  {data['role']:<13} {data['username']} / {data['password']}")
        print("-" * 50)


if __name__ == '__main__':
    create_seed_data()
