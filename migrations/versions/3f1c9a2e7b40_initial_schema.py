"""initial_schema

Revision ID: 3f1c9a2e7b40
Revises:
Create Date: 2026-10-18 09:12:44.518230+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c9a2e7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    # 1. areas (no FKs)
    op.create_table('areas',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('name', sa.Text(), nullable=False),
    sa.Column('code', sa.String(length=20), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('state_id', sa.String(length=50), nullable=True),
    sa.Column('district_id', sa.String(length=50), nullable=True),
    sa.Column('boundaries', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('population', sa.Integer(), nullable=True),
    sa.Column('area_size_km2', sa.Numeric(precision=10, scale=2), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    *_timestamps(),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('code')
    )

    # 2. departments (head_official_id is a plain reference)
    op.create_table('departments',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('name', sa.Text(), nullable=False),
    sa.Column('code', sa.String(length=20), nullable=False),
    sa.Column('category', sa.String(length=30), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('head_official_id', sa.UUID(), nullable=True),
    sa.Column('contact_email', sa.String(length=255), nullable=True),
    sa.Column('contact_phone', sa.String(length=50), nullable=True),
    sa.Column('office_address', sa.Text(), nullable=True),
    sa.Column('budget_allocation', sa.Numeric(precision=15, scale=2), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    *_timestamps(),
    sa.CheckConstraint(
        "category IN ('infrastructure','environment','safety','utilities','parks','administration')",
        name='chk_department_category'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('code')
    )

    # 3. profiles (FK to areas + departments)
    op.create_table('profiles',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('user_type', sa.String(length=30), nullable=False, server_default='user'),
    sa.Column('full_name', sa.String(length=200), nullable=True),
    sa.Column('first_name', sa.String(length=100), nullable=True),
    sa.Column('last_name', sa.String(length=100), nullable=True),
    sa.Column('phone', sa.String(length=50), nullable=True),
    sa.Column('address', sa.Text(), nullable=True),
    sa.Column('city', sa.String(length=100), nullable=True),
    sa.Column('state', sa.String(length=100), nullable=True),
    sa.Column('postal_code', sa.String(length=20), nullable=True),
    sa.Column('avatar_url', sa.Text(), nullable=True),
    sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('verified_at', sa.DateTime(), nullable=True),
    sa.Column('last_login_at', sa.DateTime(), nullable=True),
    sa.Column('assigned_area_id', sa.UUID(), nullable=True),
    sa.Column('assigned_department_id', sa.UUID(), nullable=True),
    sa.Column('contractor_license', sa.String(length=100), nullable=True),
    sa.Column('contractor_rating', sa.Numeric(precision=3, scale=2), nullable=True),
    sa.Column('contractor_specializations', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('notification_settings', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('preferences', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    *_timestamps(),
    sa.CheckConstraint(
        "user_type IN ('user','admin','area_super_admin','department_admin','tender')",
        name='chk_profile_user_type'),
    sa.ForeignKeyConstraint(['assigned_area_id'], ['areas.id'], ),
    sa.ForeignKeyConstraint(['assigned_department_id'], ['departments.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email')
    )
    op.create_index('idx_profiles_user_type', 'profiles', ['user_type'], unique=False)
    op.create_index('idx_profiles_assigned_area', 'profiles', ['assigned_area_id'], unique=False)
    op.create_index('idx_profiles_assigned_department', 'profiles', ['assigned_department_id'], unique=False)

    # 4. issues
    op.create_table('issues',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('title', sa.Text(), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('category', sa.String(length=30), nullable=False),
    sa.Column('priority', sa.String(length=20), nullable=False, server_default='medium'),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
    sa.Column('workflow_stage', sa.String(length=30), nullable=False, server_default='reported'),
    sa.Column('location_name', sa.Text(), nullable=True),
    sa.Column('address', sa.Text(), nullable=True),
    sa.Column('latitude', sa.Numeric(precision=10, scale=8), nullable=True),
    sa.Column('longitude', sa.Numeric(precision=11, scale=8), nullable=True),
    sa.Column('area', sa.Text(), nullable=True),
    sa.Column('ward', sa.Text(), nullable=True),
    sa.Column('images', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('assigned_area_id', sa.UUID(), nullable=True),
    sa.Column('assigned_department_id', sa.UUID(), nullable=True),
    sa.Column('current_assignee_id', sa.UUID(), nullable=True),
    sa.Column('estimated_resolution_date', sa.Date(), nullable=True),
    sa.Column('resolved_at', sa.DateTime(), nullable=True),
    sa.Column('final_resolution_notes', sa.Text(), nullable=True),
    sa.Column('upvotes', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('downvotes', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('views_count', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('tags', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    *_timestamps(),
    sa.CheckConstraint(
        "category IN ('roads','utilities','environment','safety','parks','other')",
        name='chk_issue_category'),
    sa.CheckConstraint("priority IN ('low','medium','high','urgent')", name='chk_issue_priority'),
    sa.CheckConstraint(
        "status IN ('pending','acknowledged','in_progress','resolved','closed','rejected')",
        name='chk_issue_status'),
    sa.CheckConstraint(
        "workflow_stage IN ('reported','area_review','department_assigned',"
        "'contractor_assigned','work_in_progress','work_completed','verified','resolved')",
        name='chk_issue_workflow_stage'),
    sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['assigned_area_id'], ['areas.id'], ),
    sa.ForeignKeyConstraint(['assigned_department_id'], ['departments.id'], ),
    sa.ForeignKeyConstraint(['current_assignee_id'], ['profiles.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_issues_workflow_stage', 'issues', ['workflow_stage'], unique=False)
    op.create_index('idx_issues_assigned_department', 'issues', ['assigned_department_id'], unique=False)
    op.create_index('idx_issues_assigned_area', 'issues', ['assigned_area_id'], unique=False)
    op.create_index('idx_issues_status', 'issues', ['status'], unique=False)
    op.create_index('idx_issues_category', 'issues', ['category'], unique=False)

    # 5. issue_assignments (append-only routing trail)
    op.create_table('issue_assignments',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('issue_id', sa.UUID(), nullable=False),
    sa.Column('assigned_by', sa.UUID(), nullable=False),
    sa.Column('assigned_to', sa.UUID(), nullable=True),
    sa.Column('assigned_area_id', sa.UUID(), nullable=True),
    sa.Column('assigned_department_id', sa.UUID(), nullable=True),
    sa.Column('assignment_type', sa.String(length=40), nullable=False),
    sa.Column('assignment_notes', sa.Text(), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
    *_timestamps(),
    sa.CheckConstraint(
        "assignment_type IN ('admin_to_area','area_to_department','department_to_contractor')",
        name='chk_assignment_type'),
    sa.CheckConstraint(
        "status IN ('active','completed','reassigned','cancelled')",
        name='chk_assignment_status'),
    sa.ForeignKeyConstraint(['issue_id'], ['issues.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['assigned_by'], ['profiles.id'], ),
    sa.ForeignKeyConstraint(['assigned_to'], ['profiles.id'], ondelete='SET NULL'),
    sa.ForeignKeyConstraint(['assigned_area_id'], ['areas.id'], ),
    sa.ForeignKeyConstraint(['assigned_department_id'], ['departments.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_issue_assignments_issue_id', 'issue_assignments', ['issue_id'], unique=False)
    op.create_index('idx_issue_assignments_assigned_to', 'issue_assignments', ['assigned_to'], unique=False)

    # 6. issue_votes
    op.create_table('issue_votes',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('issue_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('vote_type', sa.String(length=10), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    sa.CheckConstraint("vote_type IN ('upvote','downvote')", name='chk_issue_vote_type'),
    sa.ForeignKeyConstraint(['issue_id'], ['issues.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('issue_id', 'user_id', name='uq_issue_vote_user')
    )

    # 7. tenders (FK to profiles, departments, issues)
    op.create_table('tenders',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('posted_by', sa.UUID(), nullable=False),
    sa.Column('department_id', sa.UUID(), nullable=False),
    sa.Column('source_issue_id', sa.UUID(), nullable=True),
    sa.Column('title', sa.Text(), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('category', sa.String(length=50), nullable=False),
    sa.Column('location', sa.Text(), nullable=False),
    sa.Column('area', sa.Text(), nullable=True),
    sa.Column('ward', sa.Text(), nullable=True),
    sa.Column('estimated_budget_min', sa.Numeric(precision=15, scale=2), nullable=True),
    sa.Column('estimated_budget_max', sa.Numeric(precision=15, scale=2), nullable=True),
    sa.Column('deadline_date', sa.Date(), nullable=False),
    sa.Column('submission_deadline', sa.DateTime(), nullable=False),
    sa.Column('priority', sa.String(length=20), nullable=False, server_default='medium'),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
    sa.Column('workflow_stage', sa.String(length=30), nullable=False, server_default='created'),
    sa.Column('requirements', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('documents', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('awarded_contractor_id', sa.UUID(), nullable=True),
    sa.Column('awarded_amount', sa.Numeric(precision=15, scale=2), nullable=True),
    sa.Column('awarded_at', sa.DateTime(), nullable=True),
    sa.Column('work_started_at', sa.DateTime(), nullable=True),
    sa.Column('completion_date', sa.DateTime(), nullable=True),
    sa.Column('verification_notes', sa.Text(), nullable=True),
    sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    *_timestamps(),
    sa.CheckConstraint("priority IN ('low','medium','high','urgent')", name='chk_tender_priority'),
    sa.CheckConstraint(
        "status IN ('draft','available','bidding_closed','awarded','completed','cancelled')",
        name='chk_tender_status'),
    sa.CheckConstraint(
        "workflow_stage IN ('created','available','awarded','work_in_progress',"
        "'work_completed','verified','completed')",
        name='chk_tender_workflow_stage'),
    sa.CheckConstraint(
        "(awarded_contractor_id IS NOT NULL) = (status IN ('awarded','completed'))",
        name='chk_tender_award_matches_status'),
    sa.ForeignKeyConstraint(['posted_by'], ['profiles.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ),
    sa.ForeignKeyConstraint(['source_issue_id'], ['issues.id'], ),
    sa.ForeignKeyConstraint(['awarded_contractor_id'], ['profiles.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_tenders_department_id', 'tenders', ['department_id'], unique=False)
    op.create_index('idx_tenders_status', 'tenders', ['status'], unique=False)
    op.create_index('idx_tenders_workflow_stage', 'tenders', ['workflow_stage'], unique=False)
    op.create_index('idx_tenders_source_issue', 'tenders', ['source_issue_id'], unique=False)

    # 8. bids
    op.create_table('bids',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('tender_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
    sa.Column('details', sa.Text(), nullable=False),
    sa.Column('timeline', sa.Text(), nullable=True),
    sa.Column('methodology', sa.Text(), nullable=True),
    sa.Column('team_details', sa.Text(), nullable=True),
    sa.Column('documents', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='submitted'),
    sa.Column('evaluation_score', sa.Numeric(precision=5, scale=2), nullable=True),
    sa.Column('evaluation_notes', sa.Text(), nullable=True),
    sa.Column('submitted_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    sa.Column('reviewed_at', sa.DateTime(), nullable=True),
    *_timestamps(),
    sa.CheckConstraint(
        "status IN ('draft','submitted','under_review','accepted','rejected','withdrawn')",
        name='chk_bid_status'),
    sa.CheckConstraint('amount > 0', name='chk_bid_amount'),
    sa.ForeignKeyConstraint(['tender_id'], ['tenders.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('tender_id', 'user_id', name='uq_bid_tender_bidder')
    )
    op.create_index('idx_bids_tender_id', 'bids', ['tender_id'], unique=False)
    op.create_index('idx_bids_user_id', 'bids', ['user_id'], unique=False)
    op.create_index('idx_bids_status', 'bids', ['status'], unique=False)
    # At most one accepted bid per tender
    op.create_index(
        'uq_bids_one_accepted_per_tender', 'bids', ['tender_id'],
        unique=True, postgresql_where=sa.text("status = 'accepted'"),
    )

    # 9. work_progress
    op.create_table('work_progress',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('tender_id', sa.UUID(), nullable=False),
    sa.Column('contractor_id', sa.UUID(), nullable=False),
    sa.Column('progress_type', sa.String(length=20), nullable=False),
    sa.Column('title', sa.Text(), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('progress_percentage', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('images', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('materials_used', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('challenges_faced', sa.Text(), nullable=True),
    sa.Column('next_steps', sa.Text(), nullable=True),
    sa.Column('requires_verification', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='submitted'),
    sa.Column('verified_by', sa.UUID(), nullable=True),
    sa.Column('verified_at', sa.DateTime(), nullable=True),
    sa.Column('verification_notes', sa.Text(), nullable=True),
    *_timestamps(),
    sa.CheckConstraint(
        "progress_type IN ('start','milestone','completion')", name='chk_work_progress_type'),
    sa.CheckConstraint(
        "status IN ('submitted','approved','rejected','under_review')",
        name='chk_work_progress_status'),
    sa.CheckConstraint(
        'progress_percentage >= 0 AND progress_percentage <= 100',
        name='chk_work_progress_percentage'),
    sa.ForeignKeyConstraint(['tender_id'], ['tenders.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['contractor_id'], ['profiles.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['verified_by'], ['profiles.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_work_progress_tender_id', 'work_progress', ['tender_id'], unique=False)
    op.create_index('idx_work_progress_contractor_id', 'work_progress', ['contractor_id'], unique=False)

    # 10. community + directory tables
    op.create_table('community_posts',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('title', sa.Text(), nullable=True),
    sa.Column('content', sa.Text(), nullable=False),
    sa.Column('category', sa.String(length=30), nullable=False, server_default='discussions'),
    sa.Column('tags', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('images', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('likes_count', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('comments_count', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('is_official', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('is_pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
    *_timestamps(),
    sa.CheckConstraint(
        "category IN ('discussions','announcements','suggestions','events')",
        name='chk_community_post_category'),
    sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )

    op.create_table('feedback',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('user_id', sa.UUID(), nullable=True),
    sa.Column('issue_id', sa.UUID(), nullable=True),
    sa.Column('type', sa.String(length=20), nullable=False),
    sa.Column('subject', sa.Text(), nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('priority', sa.String(length=20), nullable=True, server_default='medium'),
    sa.Column('contact_email', sa.String(length=255), nullable=True),
    sa.Column('contact_phone', sa.String(length=50), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
    sa.Column('admin_response', sa.Text(), nullable=True),
    sa.Column('responded_by', sa.UUID(), nullable=True),
    sa.Column('responded_at', sa.DateTime(), nullable=True),
    *_timestamps(),
    sa.CheckConstraint(
        "type IN ('complaint','suggestion','compliment','inquiry')", name='chk_feedback_type'),
    sa.CheckConstraint("priority IN ('low','medium','high')", name='chk_feedback_priority'),
    sa.CheckConstraint(
        "status IN ('pending','acknowledged','under_review','responded','resolved')",
        name='chk_feedback_status'),
    sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['issue_id'], ['issues.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['responded_by'], ['profiles.id'], ),
    sa.PrimaryKeyConstraint('id')
    )

    op.create_table('municipal_officials',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('name', sa.Text(), nullable=False),
    sa.Column('title', sa.Text(), nullable=False),
    sa.Column('department', sa.Text(), nullable=False),
    sa.Column('sub_department', sa.Text(), nullable=True),
    sa.Column('email', sa.String(length=255), nullable=True),
    sa.Column('phone', sa.String(length=50), nullable=True),
    sa.Column('whatsapp_number', sa.String(length=50), nullable=True),
    sa.Column('office_address', sa.Text(), nullable=True),
    sa.Column('office_hours', sa.Text(), nullable=True),
    sa.Column('responsibilities', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('specializations', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('bio', sa.Text(), nullable=True),
    sa.Column('languages_spoken', postgresql.ARRAY(sa.Text()), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
    *_timestamps(),
    sa.PrimaryKeyConstraint('id')
    )

    # 11. notifications
    op.create_table('notifications',
    sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('title', sa.Text(), nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('type', sa.String(length=30), nullable=False),
    sa.Column('related_id', sa.UUID(), nullable=True),
    sa.Column('related_type', sa.String(length=30), nullable=True),
    sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
    sa.CheckConstraint(
        "type IN ('issue_update','tender_update','bid_update','assignment','system')",
        name='chk_notification_type'),
    sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_notifications_user', 'notifications', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_notifications_user', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('municipal_officials')
    op.drop_table('feedback')
    op.drop_table('community_posts')
    op.drop_index('idx_work_progress_contractor_id', table_name='work_progress')
    op.drop_index('idx_work_progress_tender_id', table_name='work_progress')
    op.drop_table('work_progress')
    op.drop_index('uq_bids_one_accepted_per_tender', table_name='bids')
    op.drop_index('idx_bids_status', table_name='bids')
    op.drop_index('idx_bids_user_id', table_name='bids')
    op.drop_index('idx_bids_tender_id', table_name='bids')
    op.drop_table('bids')
    op.drop_index('idx_tenders_source_issue', table_name='tenders')
    op.drop_index('idx_tenders_workflow_stage', table_name='tenders')
    op.drop_index('idx_tenders_status', table_name='tenders')
    op.drop_index('idx_tenders_department_id', table_name='tenders')
    op.drop_table('tenders')
    op.drop_table('issue_votes')
    op.drop_index('idx_issue_assignments_assigned_to', table_name='issue_assignments')
    op.drop_index('idx_issue_assignments_issue_id', table_name='issue_assignments')
    op.drop_table('issue_assignments')
    op.drop_index('idx_issues_category', table_name='issues')
    op.drop_index('idx_issues_status', table_name='issues')
    op.drop_index('idx_issues_assigned_area', table_name='issues')
    op.drop_index('idx_issues_assigned_department', table_name='issues')
    op.drop_index('idx_issues_workflow_stage', table_name='issues')
    op.drop_table('issues')
    op.drop_index('idx_profiles_assigned_department', table_name='profiles')
    op.drop_index('idx_profiles_assigned_area', table_name='profiles')
    op.drop_index('idx_profiles_user_type', table_name='profiles')
    op.drop_table('profiles')
    op.drop_table('departments')
    op.drop_table('areas')
