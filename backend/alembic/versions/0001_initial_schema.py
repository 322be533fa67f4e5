"""initial_schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the platform tables and the per-website tables."""
    # Platform tables
    op.create_table(
        'websites',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('subdomain', sa.String(length=63), nullable=True),
        sa.Column('custom_domain', sa.String(length=253), nullable=True),
        sa.Column('custom_domain_verified', sa.Boolean(), nullable=False),
        sa.Column('custom_domain_verified_at', sa.DateTime(), nullable=True),
        sa.Column('custom_domain_verification_token', sa.String(length=64), nullable=True),
        sa.Column('company_display_name', sa.String(), nullable=True),
        sa.Column('site_type', sa.String(), nullable=True),
        sa.Column('theme_name', sa.String(), nullable=False),
        sa.Column('main_logo_url', sa.String(), nullable=True),
        sa.Column('default_client_locale', sa.String(), nullable=False),
        sa.Column('supported_locales', sa.JSON(), nullable=True),
        sa.Column('default_area_unit', sa.String(), nullable=False),
        sa.Column('email_for_general_contact_form', sa.String(), nullable=True),
        sa.Column('default_currency', sa.String(length=3), nullable=False),
        sa.Column('available_currencies', sa.JSON(), nullable=True),
        sa.Column('exchange_rates', sa.JSON(), nullable=True),
        sa.Column('exchange_rates_updated_at', sa.DateTime(), nullable=True),
        sa.Column('rendering_mode', sa.String(), nullable=False),
        sa.Column('client_theme_name', sa.String(), nullable=True),
        sa.Column('client_theme_config', sa.JSON(), nullable=True),
        sa.Column('provisioning_state', sa.String(), nullable=False),
        sa.Column('provisioning_started_at', sa.DateTime(), nullable=True),
        sa.Column('provisioning_completed_at', sa.DateTime(), nullable=True),
        sa.Column('provisioning_failed_at', sa.DateTime(), nullable=True),
        sa.Column('provisioning_error', sa.Text(), nullable=True),
        sa.Column('owner_email', sa.String(), nullable=True),
        sa.Column('email_verification_token', sa.String(), nullable=True),
        sa.Column('email_verification_token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('email_verified_at', sa.DateTime(), nullable=True),
        sa.Column('shard_name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email_verification_token'),
    )
    op.create_index('ix_websites_id', 'websites', ['id'])
    op.create_index('ix_websites_subdomain', 'websites', ['subdomain'], unique=True)
    op.create_index('ix_websites_custom_domain', 'websites', ['custom_domain'], unique=True)
    op.create_index('ix_websites_provisioning_state', 'websites', ['provisioning_state'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('first_names', sa.String(), nullable=True),
        sa.Column('last_names', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('is_superuser', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_memberships',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('website_id', sa.Integer(), sa.ForeignKey('websites.id'), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'website_id', name='uq_membership_user_website'),
    )
    op.create_index('ix_user_memberships_id', 'user_memberships', ['id'])
    op.create_index('ix_user_memberships_user_id', 'user_memberships', ['user_id'])
    op.create_index('ix_user_memberships_website_id', 'user_memberships', ['website_id'])

    op.create_table(
        'user_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_sessions_id', 'user_sessions', ['id'])
    op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])
    op.create_index('ix_user_sessions_token', 'user_sessions', ['token'], unique=True)

    op.create_table(
        'subdomains',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=40), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('reserved_at', sa.DateTime(), nullable=True),
        sa.Column('reserved_until', sa.DateTime(), nullable=True),
        sa.Column('reserved_by_email', sa.String(), nullable=True),
        sa.Column('website_id', sa.Integer(), sa.ForeignKey('websites.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_subdomains_id', 'subdomains', ['id'])
    op.create_index('ix_subdomains_name', 'subdomains', ['name'], unique=True)
    op.create_index('ix_subdomains_state', 'subdomains', ['state'])
    op.create_index('ix_subdomains_reserved_until', 'subdomains', ['reserved_until'])
    op.create_index('ix_subdomains_reserved_by_email', 'subdomains', ['reserved_by_email'])
    op.create_index('ix_subdomains_website_id', 'subdomains', ['website_id'])

    op.create_table(
        'client_themes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('friendly_name', sa.String(), nullable=False),
        sa.Column('version', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('preview_image_url', sa.String(), nullable=True),
        sa.Column('default_config', sa.JSON(), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_client_themes_id', 'client_themes', ['id'])
    op.create_index('ix_client_themes_name', 'client_themes', ['name'], unique=True)

    op.create_table(
        'shard_audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), sa.ForeignKey('websites.id'), nullable=False),
        sa.Column('old_shard_name', sa.String(), nullable=True),
        sa.Column('new_shard_name', sa.String(), nullable=False),
        sa.Column('changed_by_email', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shard_audit_logs_id', 'shard_audit_logs', ['id'])
    op.create_index('ix_shard_audit_logs_website_id', 'shard_audit_logs', ['website_id'])

    # Per-website tables
    op.create_table(
        'agencies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('company_name', sa.String(), nullable=True),
        sa.Column('email_primary', sa.String(), nullable=True),
        sa.Column('email_for_general_contact_form', sa.String(), nullable=True),
        sa.Column('email_for_property_contact_form', sa.String(), nullable=True),
        sa.Column('phone_number_primary', sa.String(), nullable=True),
        sa.Column('phone_number_mobile', sa.String(), nullable=True),
        sa.Column('street_address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_agencies_id', 'agencies', ['id'])
    op.create_index('ix_agencies_website_id', 'agencies', ['website_id'])

    op.create_table(
        'props',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('reference', sa.String(), nullable=True),
        sa.Column('slug', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('year_construction', sa.Integer(), nullable=True),
        sa.Column('count_bedrooms', sa.Integer(), nullable=True),
        sa.Column('count_bathrooms', sa.Float(), nullable=True),
        sa.Column('count_toilets', sa.Integer(), nullable=True),
        sa.Column('count_garages', sa.Integer(), nullable=True),
        sa.Column('plot_area', sa.Float(), nullable=True),
        sa.Column('constructed_area', sa.Float(), nullable=True),
        sa.Column('prop_type_key', sa.String(), nullable=True),
        sa.Column('prop_state_key', sa.String(), nullable=True),
        sa.Column('primary_image_url', sa.String(), nullable=True),
        sa.Column('visible', sa.Boolean(), nullable=False),
        sa.Column('highlighted', sa.Boolean(), nullable=False),
        sa.Column('reserved', sa.Boolean(), nullable=False),
        sa.Column('sold', sa.Boolean(), nullable=False),
        sa.Column('archived', sa.Boolean(), nullable=False),
        sa.Column('furnished', sa.Boolean(), nullable=False),
        sa.Column('for_sale', sa.Boolean(), nullable=False),
        sa.Column('for_rent_long_term', sa.Boolean(), nullable=False),
        sa.Column('for_rent_short_term', sa.Boolean(), nullable=False),
        sa.Column('price_sale_current_cents', sa.BigInteger(), nullable=False),
        sa.Column('price_sale_current_currency', sa.String(length=3), nullable=True),
        sa.Column('price_rental_monthly_current_cents', sa.BigInteger(), nullable=False),
        sa.Column('price_rental_monthly_current_currency', sa.String(length=3), nullable=True),
        sa.Column('price_rental_monthly_for_search_cents', sa.BigInteger(), nullable=False),
        sa.Column('street_address', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('region', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('game_token', sa.String(), nullable=True),
        sa.Column('game_enabled', sa.Boolean(), nullable=False),
        sa.Column('game_views_count', sa.Integer(), nullable=False),
        sa.Column('game_shares_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_props_id', 'props', ['id'])
    op.create_index('ix_props_website_id', 'props', ['website_id'])
    op.create_index('ix_props_reference', 'props', ['reference'])
    op.create_index('ix_props_slug', 'props', ['slug'])
    op.create_index('ix_props_prop_type_key', 'props', ['prop_type_key'])
    op.create_index('ix_props_visible', 'props', ['visible'])
    op.create_index('ix_props_for_sale', 'props', ['for_sale'])
    op.create_index('ix_props_game_token', 'props', ['game_token'], unique=True)

    op.create_table(
        'features',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('prop_id', sa.Integer(), sa.ForeignKey('props.id', ondelete='CASCADE'), nullable=False),
        sa.Column('feature_key', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('prop_id', 'feature_key', name='uq_feature_prop_key'),
    )
    op.create_index('ix_features_id', 'features', ['id'])
    op.create_index('ix_features_prop_id', 'features', ['prop_id'])
    op.create_index('ix_features_feature_key', 'features', ['feature_key'])

    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('primary_email', sa.String(), nullable=True),
        sa.Column('primary_phone_number', sa.String(), nullable=True),
        sa.Column('other_phone_number', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contacts_id', 'contacts', ['id'])
    op.create_index('ix_contacts_website_id', 'contacts', ['website_id'])
    op.create_index('ix_contacts_first_name', 'contacts', ['first_name'])
    op.create_index('ix_contacts_last_name', 'contacts', ['last_name'])
    op.create_index('ix_contacts_primary_email', 'contacts', ['primary_email'])
    op.create_index('ix_contacts_primary_phone_number', 'contacts', ['primary_phone_number'])

    op.create_table(
        'messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('origin_email', sa.String(), nullable=True),
        sa.Column('delivery_email', sa.String(), nullable=True),
        sa.Column('origin_ip', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('locale', sa.String(), nullable=True),
        sa.Column('host', sa.String(), nullable=True),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('contact_id', sa.Integer(), sa.ForeignKey('contacts.id'), nullable=True),
        sa.Column('prop_id', sa.Integer(), sa.ForeignKey('props.id'), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('delivery_success', sa.Boolean(), nullable=False),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('delivery_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_id', 'messages', ['id'])
    op.create_index('ix_messages_website_id', 'messages', ['website_id'])
    op.create_index('ix_messages_contact_id', 'messages', ['contact_id'])
    op.create_index('ix_messages_prop_id', 'messages', ['prop_id'])

    op.create_table(
        'links',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('link_url', sa.String(), nullable=True),
        sa.Column('link_title', sa.String(), nullable=True),
        sa.Column('placement', sa.String(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('visible', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('website_id', 'slug', name='uq_link_website_slug'),
    )
    op.create_index('ix_links_id', 'links', ['id'])
    op.create_index('ix_links_website_id', 'links', ['website_id'])

    op.create_table(
        'field_keys',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('global_key', sa.String(), nullable=False),
        sa.Column('tag', sa.String(), nullable=False),
        sa.Column('label', sa.String(), nullable=True),
        sa.Column('visible', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('website_id', 'global_key', name='uq_field_key_website_key'),
    )
    op.create_index('ix_field_keys_id', 'field_keys', ['id'])
    op.create_index('ix_field_keys_website_id', 'field_keys', ['website_id'])
    op.create_index('ix_field_keys_tag', 'field_keys', ['tag'])

    op.create_table(
        'market_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('subject_prop_id', sa.Integer(), sa.ForeignKey('props.id'), nullable=True),
        sa.Column('report_type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('reference_number', sa.String(), nullable=True),
        sa.Column('subject_details', sa.JSON(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('radius_km', sa.Float(), nullable=True),
        sa.Column('market_statistics', sa.JSON(), nullable=True),
        sa.Column('comparable_properties', sa.JSON(), nullable=True),
        sa.Column('ai_insights', sa.JSON(), nullable=True),
        sa.Column('suggested_price_low_cents', sa.BigInteger(), nullable=True),
        sa.Column('suggested_price_high_cents', sa.BigInteger(), nullable=True),
        sa.Column('suggested_price_currency', sa.String(length=3), nullable=True),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('branding', sa.JSON(), nullable=True),
        sa.Column('share_token', sa.String(), nullable=True),
        sa.Column('shared_at', sa.DateTime(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('generated_at', sa.DateTime(), nullable=True),
        sa.Column('workflow_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_market_reports_id', 'market_reports', ['id'])
    op.create_index('ix_market_reports_website_id', 'market_reports', ['website_id'])
    op.create_index('ix_market_reports_subject_prop_id', 'market_reports', ['subject_prop_id'])
    op.create_index('ix_market_reports_user_id', 'market_reports', ['user_id'])
    op.create_index('ix_market_reports_status', 'market_reports', ['status'])
    op.create_index('ix_market_reports_reference_number', 'market_reports', ['reference_number'])
    op.create_index('ix_market_reports_share_token', 'market_reports', ['share_token'], unique=True)

    op.create_table(
        'listing_videos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('prop_id', sa.Integer(), sa.ForeignKey('props.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('format', sa.String(), nullable=False),
        sa.Column('style', sa.String(), nullable=False),
        sa.Column('voice', sa.String(), nullable=False),
        sa.Column('reference_number', sa.String(), nullable=True),
        sa.Column('script', sa.Text(), nullable=True),
        sa.Column('scenes', sa.JSON(), nullable=True),
        sa.Column('music_track', sa.String(), nullable=True),
        sa.Column('video_url', sa.String(), nullable=True),
        sa.Column('thumbnail_url', sa.String(), nullable=True),
        sa.Column('audio_url', sa.String(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('cost_cents', sa.Integer(), nullable=True),
        sa.Column('branding', sa.JSON(), nullable=True),
        sa.Column('share_token', sa.String(), nullable=True),
        sa.Column('shared_at', sa.DateTime(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('failed_at', sa.DateTime(), nullable=True),
        sa.Column('generated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_listing_videos_id', 'listing_videos', ['id'])
    op.create_index('ix_listing_videos_website_id', 'listing_videos', ['website_id'])
    op.create_index('ix_listing_videos_prop_id', 'listing_videos', ['prop_id'])
    op.create_index('ix_listing_videos_user_id', 'listing_videos', ['user_id'])
    op.create_index('ix_listing_videos_status', 'listing_videos', ['status'])
    op.create_index('ix_listing_videos_reference_number', 'listing_videos', ['reference_number'])
    op.create_index('ix_listing_videos_share_token', 'listing_videos', ['share_token'], unique=True)

    op.create_table(
        'price_guesses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('website_id', sa.Integer(), nullable=False),
        sa.Column('prop_id', sa.Integer(), sa.ForeignKey('props.id'), nullable=False),
        sa.Column('visitor_token', sa.String(), nullable=False),
        sa.Column('listing_type', sa.String(), nullable=False),
        sa.Column('guessed_price_cents', sa.BigInteger(), nullable=False),
        sa.Column('guessed_price_currency', sa.String(length=3), nullable=True),
        sa.Column('actual_price_cents', sa.BigInteger(), nullable=False),
        sa.Column('actual_price_currency', sa.String(length=3), nullable=True),
        sa.Column('percentage_diff', sa.Numeric(precision=8, scale=2), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('prop_id', 'visitor_token', name='uq_price_guess_prop_visitor'),
    )
    op.create_index('ix_price_guesses_id', 'price_guesses', ['id'])
    op.create_index('ix_price_guesses_website_id', 'price_guesses', ['website_id'])
    op.create_index('ix_price_guesses_prop_id', 'price_guesses', ['prop_id'])
    op.create_index('ix_price_guesses_score', 'price_guesses', ['score'])


def downgrade() -> None:
    """Drop every table, children first."""
    for table in (
        'price_guesses', 'listing_videos', 'market_reports', 'field_keys', 'links',
        'messages', 'contacts', 'features', 'props', 'agencies', 'shard_audit_logs',
        'client_themes', 'subdomains', 'user_sessions', 'user_memberships', 'users', 'websites',
    ):
        op.drop_table(table)
