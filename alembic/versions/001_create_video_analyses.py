"""Create video_analyses and analysis_queue tables

Revision ID: 001_create_video_analyses
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_video_analyses'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create analysis result and queue tables."""
    op.create_table(
        'video_analyses',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('video_id', sa.String(length=255), nullable=False),
        sa.Column('candidate_id', sa.String(length=255), nullable=False),
        sa.Column('request_data', sa.JSON(), nullable=True),
        sa.Column('analysis_data', sa.JSON(), nullable=True),
        sa.Column('skills_detected', sa.JSON(), nullable=True, comment='Detected technical skill assessments'),
        sa.Column('traits_assessment', sa.JSON(), nullable=True, comment='Proficiency traits per detected skill'),
        sa.Column('confidence_scores', sa.JSON(), nullable=True, comment='Per-category scores'),
        sa.Column('overall_score', sa.Integer(), nullable=True),
        sa.Column('processing_status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('progress_percent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_step', sa.String(length=255), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('failed_stage', sa.String(length=50), nullable=True),
        sa.Column('processing_started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processing_completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_video_analyses_video_id', 'video_analyses', ['video_id'])
    op.create_index('ix_video_analyses_candidate_id', 'video_analyses', ['candidate_id'])
    op.create_index('idx_video_analyses_status_created', 'video_analyses', ['processing_status', 'created_at'])

    op.create_table(
        'analysis_queue',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('video_analysis_id', sa.String(length=64), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_details', sa.JSON(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['video_analysis_id'], ['video_analyses.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_analysis_queue_video_analysis_id', 'analysis_queue', ['video_analysis_id'])
    op.create_index('idx_analysis_queue_status_priority', 'analysis_queue', ['status', 'priority', 'scheduled_for'])


def downgrade() -> None:
    """Drop analysis result and queue tables."""
    op.drop_index('idx_analysis_queue_status_priority', table_name='analysis_queue')
    op.drop_index('ix_analysis_queue_video_analysis_id', table_name='analysis_queue')
    op.drop_table('analysis_queue')
    op.drop_index('idx_video_analyses_status_created', table_name='video_analyses')
    op.drop_index('ix_video_analyses_candidate_id', table_name='video_analyses')
    op.drop_index('ix_video_analyses_video_id', table_name='video_analyses')
    op.drop_table('video_analyses')
