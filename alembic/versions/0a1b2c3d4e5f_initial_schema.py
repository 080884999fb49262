"""initial schema: users, questions, answers, classes, resources, books

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 12:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('institution_name', sa.String(255), nullable=False),
        sa.Column('class', sa.String(50), nullable=False),
        sa.Column('group', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='student'),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar', sa.String(500), nullable=True),
        sa.Column('badges', sa.JSON(), nullable=False),
        sa.Column('bookmarks', sa.JSON(), nullable=False),
        sa.Column('is_verified_teacher', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('applied_for_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('suspended', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'questions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('class', sa.String(50), nullable=False),
        sa.Column('group', sa.String(100), nullable=True),
        sa.Column('subject', sa.JSON(), nullable=False),
        sa.Column('files', sa.JSON(), nullable=False),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('votes', sa.JSON(), nullable=False),
        sa.Column('reports', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_questions_id', 'questions', ['id'])
    op.create_index('ix_questions_class', 'questions', ['class'])
    op.create_index('ix_questions_author_id', 'questions', ['author_id'])

    op.create_table(
        'answers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('question_id', sa.Uuid(), sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('files', sa.JSON(), nullable=False),
        sa.Column('votes', sa.JSON(), nullable=False),
        sa.Column('reports', sa.JSON(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_answers_id', 'answers', ['id'])
    op.create_index('ix_answers_question_id', 'answers', ['question_id'])
    op.create_index('ix_answers_author_id', 'answers', ['author_id'])

    op.create_table(
        'classes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('sections', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_classes_id', 'classes', ['id'])
    op.create_index('ix_classes_name', 'classes', ['name'], unique=True)

    for table, reference_column, extra in (
        ('resources', 'file', []),
        ('books', 'image', [sa.Column('price', sa.Float(), nullable=True)]),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Uuid(), primary_key=True),
            sa.Column('title', sa.String(300), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            *extra,
            sa.Column(reference_column, sa.String(500), nullable=True),
            sa.Column('link', sa.String(500), nullable=True),
            sa.Column('class', sa.String(50), nullable=True),
            sa.Column('section', sa.String(50), nullable=True),
            sa.Column('group', sa.String(100), nullable=True),
            sa.Column('moderator_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
            *_timestamps(),
        )
        op.create_index(f'ix_{table}_id', table, ['id'])
        op.create_index(f'ix_{table}_class', table, ['class'])
        op.create_index(f'ix_{table}_moderator_id', table, ['moderator_id'])


def downgrade() -> None:
    op.drop_table('books')
    op.drop_table('resources')
    op.drop_table('classes')
    op.drop_table('answers')
    op.drop_table('questions')
    op.drop_table('users')
