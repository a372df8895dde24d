"""baseline_schema

Revision ID: 7c1e52a9d0b3
Revises: 
Create Date: 2026-10-19 09:12:44.118203

Production-safe migration: creates each table only when it is missing.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '7c1e52a9d0b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOW = sa.text('(CURRENT_TIMESTAMP)')


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('full_name', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    if not table_exists('ai_runs'):
        op.create_table('ai_runs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=True),
            sa.Column('feature', sa.String(), nullable=False),
            sa.Column('input_hash', sa.String(), nullable=True),
            sa.Column('prompt_version', sa.String(), nullable=False),
            sa.Column('model', sa.String(), nullable=False),
            sa.Column('tokens_in', sa.Integer(), nullable=True),
            sa.Column('tokens_out', sa.Integer(), nullable=True),
            sa.Column('cost_estimate', sa.Float(), nullable=True),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('error_message', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_ai_run_feature_created', 'ai_runs', ['feature', 'created_at'], unique=False)
        op.create_index(op.f('ix_ai_runs_id'), 'ai_runs', ['id'], unique=False)
        op.create_index(op.f('ix_ai_runs_user_id'), 'ai_runs', ['user_id'], unique=False)
        op.create_index(op.f('ix_ai_runs_feature'), 'ai_runs', ['feature'], unique=False)
        op.create_index(op.f('ix_ai_runs_input_hash'), 'ai_runs', ['input_hash'], unique=False)

    if not table_exists('interview_sessions'):
        op.create_table('interview_sessions',
            sa.Column('id', sa.String(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=True),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('category', sa.String(), nullable=False),
            sa.Column('seniority', sa.String(), nullable=False),
            sa.Column('focus_topics', sa.Text(), nullable=True),
            sa.Column('question_index', sa.Integer(), nullable=False),
            sa.Column('max_questions', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('is_over', sa.Boolean(), nullable=False),
            sa.Column('topics_covered', sa.JSON(), nullable=False),
            sa.Column('final_report', sa.JSON(), nullable=True),
            sa.Column('version_id', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_interview_sessions_id'), 'interview_sessions', ['id'], unique=False)
        op.create_index(op.f('ix_interview_sessions_user_id'), 'interview_sessions', ['user_id'], unique=False)

    if not table_exists('interview_messages'):
        op.create_table('interview_messages',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('session_id', sa.String(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('sender', sa.String(), nullable=False),
            sa.Column('content', sa.Text(), nullable=False),
            sa.Column('metrics', sa.JSON(), nullable=True),
            sa.Column('question_index', sa.Integer(), nullable=False),
            sa.Column('is_hint', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['session_id'], ['interview_sessions.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_session_position', 'interview_messages', ['session_id', 'position'], unique=True)
        op.create_index(op.f('ix_interview_messages_id'), 'interview_messages', ['id'], unique=False)
        op.create_index(op.f('ix_interview_messages_session_id'), 'interview_messages', ['session_id'], unique=False)

    if not table_exists('roadmaps'):
        op.create_table('roadmaps',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('goal', sa.Text(), nullable=False),
            sa.Column('duration_unit', sa.String(), nullable=False),
            sa.Column('total_duration', sa.Integer(), nullable=False),
            sa.Column('is_intensive', sa.Boolean(), nullable=False),
            sa.Column('difficulty', sa.String(), nullable=True),
            sa.Column('is_completed', sa.Boolean(), nullable=False),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_roadmap_user_created', 'roadmaps', ['user_id', 'created_at'], unique=False)
        op.create_index(op.f('ix_roadmaps_id'), 'roadmaps', ['id'], unique=False)
        op.create_index(op.f('ix_roadmaps_user_id'), 'roadmaps', ['user_id'], unique=False)
        op.create_index(op.f('ix_roadmaps_created_at'), 'roadmaps', ['created_at'], unique=False)

    if not table_exists('milestones'):
        op.create_table('milestones',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('roadmap_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('order', sa.Integer(), nullable=False),
            sa.Column('week', sa.Integer(), nullable=False),
            sa.Column('duration', sa.Integer(), nullable=False),
            sa.Column('duration_unit', sa.String(), nullable=False),
            sa.Column('estimated_hours', sa.Integer(), nullable=True),
            sa.Column('difficulty', sa.String(), nullable=True),
            sa.ForeignKeyConstraint(['roadmap_id'], ['roadmaps.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_milestones_id'), 'milestones', ['id'], unique=False)
        op.create_index(op.f('ix_milestones_roadmap_id'), 'milestones', ['roadmap_id'], unique=False)

    if not table_exists('resources'):
        op.create_table('resources',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('milestone_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('url', sa.String(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('relevance_score', sa.Float(), nullable=True),
            sa.ForeignKeyConstraint(['milestone_id'], ['milestones.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_resources_id'), 'resources', ['id'], unique=False)
        op.create_index(op.f('ix_resources_milestone_id'), 'resources', ['milestone_id'], unique=False)

    if not table_exists('quizzes'):
        op.create_table('quizzes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('milestone_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('question', sa.Text(), nullable=False),
            sa.Column('options', sa.JSON(), nullable=False),
            sa.Column('correct_index', sa.Integer(), nullable=False),
            sa.Column('explanation', sa.Text(), nullable=False),
            sa.Column('difficulty', sa.String(), nullable=True),
            sa.ForeignKeyConstraint(['milestone_id'], ['milestones.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_quizzes_id'), 'quizzes', ['id'], unique=False)
        op.create_index(op.f('ix_quizzes_milestone_id'), 'quizzes', ['milestone_id'], unique=False)

    if not table_exists('milestone_progress'):
        op.create_table('milestone_progress',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('milestone_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('time_spent_mins', sa.Integer(), nullable=False),
            sa.Column('resources_viewed', sa.JSON(), nullable=False),
            sa.ForeignKeyConstraint(['milestone_id'], ['milestones.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'milestone_id', name='uq_user_milestone')
        )
        op.create_index(op.f('ix_milestone_progress_id'), 'milestone_progress', ['id'], unique=False)
        op.create_index(op.f('ix_milestone_progress_user_id'), 'milestone_progress', ['user_id'], unique=False)
        op.create_index(op.f('ix_milestone_progress_milestone_id'), 'milestone_progress', ['milestone_id'], unique=False)

    if not table_exists('quiz_attempts'):
        op.create_table('quiz_attempts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('selected_index', sa.Integer(), nullable=False),
            sa.Column('is_correct', sa.Boolean(), nullable=False),
            sa.Column('attempted_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_attempt_user_quiz', 'quiz_attempts', ['user_id', 'quiz_id'], unique=False)
        op.create_index(op.f('ix_quiz_attempts_id'), 'quiz_attempts', ['id'], unique=False)
        op.create_index(op.f('ix_quiz_attempts_user_id'), 'quiz_attempts', ['user_id'], unique=False)
        op.create_index(op.f('ix_quiz_attempts_quiz_id'), 'quiz_attempts', ['quiz_id'], unique=False)

    if not table_exists('learning_stats'):
        op.create_table('learning_stats',
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('total_xp', sa.Integer(), nullable=False),
            sa.Column('total_points', sa.Integer(), nullable=False),
            sa.Column('level', sa.Integer(), nullable=False),
            sa.Column('current_streak', sa.Integer(), nullable=False),
            sa.Column('longest_streak', sa.Integer(), nullable=False),
            sa.Column('last_active_date', sa.DateTime(timezone=True), nullable=True),
            sa.Column('milestones_completed', sa.Integer(), nullable=False),
            sa.Column('quizzes_passed', sa.Integer(), nullable=False),
            sa.Column('total_time_spent_mins', sa.Integer(), nullable=False),
            sa.Column('badge_count', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('user_id')
        )

    if not table_exists('user_achievements'):
        op.create_table('user_achievements',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('badge_id', sa.String(), nullable=False),
            sa.Column('badge_name', sa.String(), nullable=False),
            sa.Column('badge_icon', sa.String(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('earned_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'badge_id', name='uq_user_badge')
        )
        op.create_index(op.f('ix_user_achievements_id'), 'user_achievements', ['id'], unique=False)
        op.create_index(op.f('ix_user_achievements_user_id'), 'user_achievements', ['user_id'], unique=False)

    if not table_exists('daily_goals'):
        op.create_table('daily_goals',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('target_mins', sa.Integer(), nullable=False),
            sa.Column('target_quizzes', sa.Integer(), nullable=False),
            sa.Column('mins_completed', sa.Integer(), nullable=False),
            sa.Column('quizzes_solved', sa.Integer(), nullable=False),
            sa.Column('is_completed', sa.Boolean(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'date', name='uq_user_date')
        )
        op.create_index(op.f('ix_daily_goals_id'), 'daily_goals', ['id'], unique=False)
        op.create_index(op.f('ix_daily_goals_user_id'), 'daily_goals', ['user_id'], unique=False)

    if not table_exists('analysis_results'):
        op.create_table('analysis_results',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.String(), nullable=True),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('job_description', sa.Text(), nullable=False),
            sa.Column('resume_text', sa.Text(), nullable=False),
            sa.Column('score', sa.Float(), nullable=True),
            sa.Column('status', sa.String(), nullable=True),
            sa.Column('feedback', sa.JSON(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_analysis_results_id'), 'analysis_results', ['id'], unique=False)
        op.create_index(op.f('ix_analysis_results_user_id'), 'analysis_results', ['user_id'], unique=False)


def downgrade() -> None:
    """Drop every table, children first. Indexes go with their tables."""
    for table_name in (
        'analysis_results',
        'daily_goals',
        'user_achievements',
        'learning_stats',
        'quiz_attempts',
        'milestone_progress',
        'quizzes',
        'resources',
        'milestones',
        'roadmaps',
        'interview_messages',
        'interview_sessions',
        'ai_runs',
        'users',
    ):
        if table_exists(table_name):
            op.drop_table(table_name)
