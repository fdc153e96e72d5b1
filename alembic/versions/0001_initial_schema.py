"""initial school management schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def base_columns():
    return [
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_by_id', sa.Uuid(), nullable=True),
    ]


def base_indexes(table):
    op.create_index(f'ix_{table}_id', table, ['id'])
    op.create_index(f'ix_{table}_created_at', table, ['created_at'])
    op.create_index(f'ix_{table}_deleted_at', table, ['deleted_at'])


def upgrade() -> None:
    op.create_table(
        'users',
        *base_columns(),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('full_name', sa.String(150), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('need_password_change', sa.Boolean(), nullable=False),
        sa.Column('last_login_at', sa.DateTime()),
        sa.Column('created_by_id', sa.Uuid()),
        sa.Column('updated_by_id', sa.Uuid()),
        sa.UniqueConstraint('phone', name='uq_users_phone'),
    )
    base_indexes('users')
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'user_sessions',
        *base_columns(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('ip_address', sa.String(64)),
        sa.Column('user_agent', sa.String(500)),
        sa.Column('last_activity_at', sa.DateTime()),
        sa.Column('expires_at', sa.DateTime()),
        sa.Column('revoked_at', sa.DateTime()),
    )
    base_indexes('user_sessions')
    op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])
    op.create_index('ix_user_sessions_revoked_at', 'user_sessions', ['revoked_at'])

    op.create_table(
        'staff',
        *base_columns(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('first_name', sa.String(50), nullable=False),
        sa.Column('middle_name', sa.String(50)),
        sa.Column('last_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('phone', sa.String(20)),
        sa.Column('employee_id', sa.String(30)),
        sa.Column('designation', sa.String(100)),
        sa.Column('department', sa.String(50)),
        sa.Column('qualification', sa.String(200)),
        sa.Column('experience_years', sa.Integer()),
        sa.Column('employment_date', sa.Date()),
        sa.Column('employment_status', sa.String(20), nullable=False),
        sa.Column('basic_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('allowances', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('bio', sa.Text()),
        sa.Column('emergency_contact', sa.JSON()),
        sa.Column('address', sa.JSON()),
        sa.Column('profile_photo_url', sa.String(500)),
        sa.Column('created_by_id', sa.Uuid()),
        sa.Column('updated_by_id', sa.Uuid()),
    )
    base_indexes('staff')
    op.create_index('ix_staff_user_id', 'staff', ['user_id'])
    op.create_index('ix_staff_email', 'staff', ['email'])
    op.create_index('ix_staff_employee_id', 'staff', ['employee_id'])
    op.create_index('ix_staff_department', 'staff', ['department'])

    op.create_table(
        'staff_salary_history',
        *base_columns(),
        sa.Column('staff_id', sa.Uuid(), sa.ForeignKey('staff.id'), nullable=False),
        sa.Column('effective_month', sa.Date(), nullable=False),
        sa.Column('basic_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('allowances', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('change_type', sa.String(20), nullable=False),
        sa.Column('change_reason', sa.Text()),
        sa.Column('approved_by_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_by_id', sa.Uuid()),
    )
    base_indexes('staff_salary_history')
    op.create_index('ix_staff_salary_history_staff_id', 'staff_salary_history', ['staff_id'])
    op.create_index('ix_staff_salary_history_effective_month', 'staff_salary_history', ['effective_month'])

    op.create_table(
        'classrooms',
        *base_columns(),
        sa.Column('room_no', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100)),
        sa.Column('floor', sa.Integer(), nullable=False),
        sa.Column('building', sa.String(100)),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('note', sa.Text()),
        sa.Column('created_by_id', sa.Uuid()),
        sa.Column('updated_by_id', sa.Uuid()),
    )
    base_indexes('classrooms')
    op.create_index('ix_classrooms_room_no', 'classrooms', ['room_no'], unique=True)
    op.create_index('ix_classrooms_floor', 'classrooms', ['floor'])

    op.create_table(
        'classes',
        *base_columns(),
        sa.Column('grade', sa.Integer(), nullable=False),
        sa.Column('section', sa.String(10), nullable=False),
        sa.Column('capacity', sa.Integer()),
        sa.Column('room_id', sa.Uuid(), sa.ForeignKey('classrooms.id'), nullable=True),
        sa.UniqueConstraint('grade', 'section', name='uq_class_grade_section'),
    )
    base_indexes('classes')
    op.create_index('ix_classes_room_id', 'classes', ['room_id'])

    op.create_table(
        'students',
        *base_columns(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=True),
        sa.Column('full_name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(254)),
        sa.Column('roll_number', sa.String(20)),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('gender', sa.String(10)),
        sa.Column('profile_photo_url', sa.String(500)),
        sa.Column('created_by_id', sa.Uuid()),
        sa.Column('updated_by_id', sa.Uuid()),
    )
    base_indexes('students')
    op.create_index('ix_students_user_id', 'students', ['user_id'])
    op.create_index('ix_students_class_id', 'students', ['class_id'])
    op.create_index('ix_students_email', 'students', ['email'])

    op.create_table(
        'parents',
        *base_columns(),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('full_name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('phone', sa.String(20)),
        sa.Column('occupation', sa.String(100)),
        sa.Column('address', sa.JSON()),
        sa.Column('profile_photo_url', sa.String(500)),
        sa.Column('created_by_id', sa.Uuid()),
        sa.Column('updated_by_id', sa.Uuid()),
    )
    base_indexes('parents')
    op.create_index('ix_parents_user_id', 'parents', ['user_id'])
    op.create_index('ix_parents_email', 'parents', ['email'])

    op.create_table(
        'parent_student_links',
        *base_columns(),
        sa.Column('parent_id', sa.Uuid(), sa.ForeignKey('parents.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('relationship', sa.String(30)),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Uuid()),
        sa.UniqueConstraint('parent_id', 'student_id', name='uq_parent_student'),
    )
    base_indexes('parent_student_links')
    op.create_index('ix_parent_student_links_parent_id', 'parent_student_links', ['parent_id'])
    op.create_index('ix_parent_student_links_student_id', 'parent_student_links', ['student_id'])

    op.create_table(
        'leave_types',
        *base_columns(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('max_days', sa.Integer(), nullable=False),
        sa.Column('is_paid', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(10), nullable=False),
        sa.Column('created_by_id', sa.Uuid()),
        sa.Column('updated_by_id', sa.Uuid()),
    )
    base_indexes('leave_types')
    op.create_index('ix_leave_types_name', 'leave_types', ['name'], unique=True)

    op.create_table(
        'fee_structures',
        *base_columns(),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('academic_year', sa.String(10), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('status', sa.String(10), nullable=False),
    )
    base_indexes('fee_structures')
    op.create_index('ix_fee_structures_class_id', 'fee_structures', ['class_id'])
    op.create_index('ix_fee_structures_academic_year', 'fee_structures', ['academic_year'])

    op.create_table(
        'fee_structure_items',
        *base_columns(),
        sa.Column('fee_structure_id', sa.Uuid(), sa.ForeignKey('fee_structures.id'), nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('label', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('frequency', sa.String(10), nullable=False),
        sa.Column('is_optional', sa.Boolean(), nullable=False),
    )
    base_indexes('fee_structure_items')
    op.create_index('ix_fee_structure_items_fee_structure_id', 'fee_structure_items', ['fee_structure_id'])

    op.create_table(
        'fee_structure_history',
        *base_columns(),
        sa.Column('fee_structure_id', sa.Uuid(), sa.ForeignKey('fee_structures.id'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('total_annual', sa.Numeric(14, 2), nullable=False),
        sa.Column('snapshot', sa.JSON()),
        sa.Column('change_reason', sa.Text()),
    )
    base_indexes('fee_structure_history')
    op.create_index('ix_fee_structure_history_fee_structure_id', 'fee_structure_history', ['fee_structure_id'])

    op.create_table(
        'class_timeslots',
        *base_columns(),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('day', sa.String(10), nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('label', sa.String(50)),
        sa.Column('created_by_id', sa.Uuid()),
    )
    base_indexes('class_timeslots')
    op.create_index('ix_class_timeslots_class_id', 'class_timeslots', ['class_id'])

    op.create_table(
        'schedule_slots',
        *base_columns(),
        sa.Column('class_id', sa.Uuid(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('timeslot_id', sa.Uuid(), sa.ForeignKey('class_timeslots.id'), nullable=False),
        sa.Column('day', sa.String(10), nullable=False),
        sa.Column('subject_name', sa.String(100)),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('room_id', sa.Uuid(), sa.ForeignKey('classrooms.id'), nullable=True),
        sa.Column('has_conflict', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Uuid()),
        sa.Column('updated_by_id', sa.Uuid()),
    )
    base_indexes('schedule_slots')
    op.create_index('ix_schedule_slots_class_id', 'schedule_slots', ['class_id'])
    op.create_index('ix_schedule_slots_timeslot_id', 'schedule_slots', ['timeslot_id'])
    op.create_index('ix_schedule_slots_teacher_id', 'schedule_slots', ['teacher_id'])

    op.create_table(
        'audit_logs',
        *base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.String(60), nullable=False),
        sa.Column('module', sa.String(40), nullable=False),
        sa.Column('status', sa.String(10), nullable=False),
        sa.Column('details', sa.JSON()),
        sa.Column('ip_address', sa.String(64)),
        sa.Column('user_agent', sa.String(500)),
    )
    base_indexes('audit_logs')
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_module', 'audit_logs', ['module'])


def downgrade() -> None:
    for table in (
        'audit_logs', 'schedule_slots', 'class_timeslots', 'fee_structure_history',
        'fee_structure_items', 'fee_structures', 'leave_types', 'parent_student_links',
        'parents', 'students', 'classes', 'classrooms', 'staff_salary_history', 'staff',
        'user_sessions', 'users',
    ):
        op.drop_table(table)
