"""create submissions and question_records

Revision ID: 0001_submissions_and_questions
Revises: None
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_submissions_and_questions'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'submissions',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('candidate_name', sa.String(120)),
        sa.Column('test_type', sa.String(10), nullable=False, server_default='SJT'),
        sa.Column('analysis_status', sa.String(20), nullable=False, server_default='not_analyzed'),
        sa.Column('report', sa.JSON()),
        sa.Column('analysis_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('analysis_completed_at', sa.DateTime()),
        sa.Column('regenerated_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_submissions_analysis_status', 'submissions', ['analysis_status'])

    op.create_table(
        'question_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('submission_id', sa.String(64), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('question_number', sa.Integer(), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('candidate_answer', sa.Text()),
        sa.Column('situation', sa.Text()),
        sa.Column('best_rationale', sa.Text()),
        sa.Column('worst_rationale', sa.Text()),
        sa.Column('competency', sa.String(500)),
        sa.Column('is_follow_up', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('follow_up_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('scenario_id', sa.String(64)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('submission_id', 'question_number', name='uq_question_records_submission_number'),
    )
    op.create_index('ix_question_records_submission_id', 'question_records', ['submission_id'])


def downgrade():
    op.drop_index('ix_question_records_submission_id', table_name='question_records')
    op.drop_table('question_records')
    op.drop_index('ix_submissions_analysis_status', table_name='submissions')
    op.drop_table('submissions')
