"""Business review initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

UUID = sa.String(36)


def upgrade():
    op.create_table('business_registration_requests',
        sa.Column('id', UUID, nullable=False),
        sa.Column('user_id', UUID, nullable=False),
        sa.Column('business_id', UUID, nullable=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('category', sa.String(120), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(64), nullable=True),
        sa.Column('website', sa.String(1024), nullable=True),
        sa.Column('tax_id', sa.String(64), nullable=True),
        sa.Column('document_urls', sa.JSON(), nullable=False),
        sa.Column('is_multi_user_team', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('owner_email', sa.String(255), nullable=False),
        sa.Column('owner_username', sa.String(60), nullable=False),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewer_notes', sa.Text(), nullable=True),
        sa.Column('reviewer_id', UUID, nullable=True),
        sa.Column('reviewer_name', sa.String(255), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_business_registration_requests_user_id', 'business_registration_requests', ['user_id'])
    op.create_index('ix_business_registration_requests_status', 'business_registration_requests', ['status'])
    op.create_index('ix_business_registration_requests_submitted_at', 'business_registration_requests', ['submitted_at'])

    op.create_table('business_review_events',
        sa.Column('id', UUID, nullable=False),
        sa.Column('registration_id', UUID, nullable=False),
        sa.Column('reviewer_id', UUID, nullable=True),
        sa.Column('reviewer_name', sa.String(255), nullable=True),
        sa.Column('action', sa.String(32), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['registration_id'], ['business_registration_requests.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_review_events_registration_created', 'business_review_events', ['registration_id', 'created_at'])

    op.create_table('businesses',
        sa.Column('id', UUID, nullable=False),
        sa.Column('registration_id', UUID, nullable=True),
        sa.Column('owner_user_id', UUID, nullable=False),
        sa.Column('business_name', sa.String(120), nullable=False),
        sa.Column('category', sa.String(120), nullable=False),
        sa.Column('tax_id', sa.String(64), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('website', sa.String(1024), nullable=True),
        sa.Column('logo_url', sa.String(1024), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['registration_id'], ['business_registration_requests.id'], ondelete='SET NULL'),
        sa.CheckConstraint('length(trim(business_name)) > 0', name='business_name_not_empty'),
        sa.CheckConstraint('length(trim(category)) > 0', name='business_category_not_empty'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('registration_id')
    )
    op.create_index('ix_businesses_owner_user_id', 'businesses', ['owner_user_id'])

    op.create_table('business_locations',
        sa.Column('id', UUID, nullable=False),
        sa.Column('business_id', UUID, nullable=False),
        sa.Column('location_name', sa.String(120), nullable=False),
        sa.Column('formatted_address', sa.Text(), nullable=False),
        sa.Column('street', sa.String(255), nullable=True),
        sa.Column('city', sa.String(120), nullable=True),
        sa.Column('state_region', sa.String(120), nullable=True),
        sa.Column('postal_code', sa.String(32), nullable=True),
        sa.Column('country', sa.String(120), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('google_place_id', sa.String(255), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=True),
        sa.Column('phone', sa.String(64), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('operating_hours', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('google_place_id')
    )
    op.create_index('ix_business_locations_business_id', 'business_locations', ['business_id'])
    op.create_index('idx_business_locations_business_created', 'business_locations', ['business_id', 'created_at'])
    # At most one primary per business
    op.create_index(
        'uq_business_locations_primary', 'business_locations', ['business_id'],
        unique=True,
        sqlite_where=sa.text('is_primary = 1'),
        postgresql_where=sa.text('is_primary'),
    )

    op.create_table('business_promotions',
        sa.Column('id', UUID, nullable=False),
        sa.Column('location_id', UUID, nullable=False),
        sa.Column('title', sa.String(120), nullable=False),
        sa.Column('subtitle', sa.String(160), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('promotion_type', sa.String(32), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('image_url', sa.String(1024), nullable=True),
        sa.Column('prize', sa.String(1024), nullable=True),
        sa.Column('reward_points', sa.Integer(), nullable=False),
        sa.Column('discount_percent', sa.Integer(), nullable=True),
        sa.Column('max_claims', sa.Integer(), nullable=True),
        sa.Column('per_user_limit', sa.Integer(), nullable=True),
        sa.Column('total_claims', sa.Integer(), nullable=False),
        sa.Column('requires_check_in', sa.Boolean(), nullable=False),
        sa.Column('requires_purchase', sa.Boolean(), nullable=False),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('ends_at', sa.DateTime(), nullable=False),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', UUID, nullable=True),
        sa.Column('updated_by', UUID, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['location_id'], ['business_locations.id'], ondelete='CASCADE'),
        sa.CheckConstraint('ends_at > starts_at', name='promotion_schedule_order'),
        sa.CheckConstraint('max_claims IS NULL OR total_claims <= max_claims', name='promotion_claims_within_max'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_business_promotions_location_id', 'business_promotions', ['location_id'])
    op.create_index('ix_business_promotions_status', 'business_promotions', ['status'])

    op.create_table('business_promotion_claims',
        sa.Column('id', UUID, nullable=False),
        sa.Column('promotion_id', UUID, nullable=False),
        sa.Column('user_id', UUID, nullable=False),
        sa.Column('claimed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['promotion_id'], ['business_promotions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_promotion_claims_promotion_user', 'business_promotion_claims', ['promotion_id', 'user_id'])

    op.create_table('business_location_admins',
        sa.Column('id', UUID, nullable=False),
        sa.Column('location_id', UUID, nullable=False),
        sa.Column('user_id', UUID, nullable=False),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('user_username', sa.String(60), nullable=False),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('granted_by', UUID, nullable=True),
        sa.Column('granted_by_username', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('granted_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['location_id'], ['business_locations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('location_id', 'user_id', name='unique_location_user')
    )
    op.create_index('ix_business_location_admins_location_id', 'business_location_admins', ['location_id'])
    op.create_index('ix_business_location_admins_user_id', 'business_location_admins', ['user_id'])


def downgrade():
    op.drop_table('business_location_admins')
    op.drop_table('business_promotion_claims')
    op.drop_table('business_promotions')
    op.drop_index('uq_business_locations_primary', 'business_locations')
    op.drop_table('business_locations')
    op.drop_table('businesses')
    op.drop_table('business_review_events')
    op.drop_table('business_registration_requests')
