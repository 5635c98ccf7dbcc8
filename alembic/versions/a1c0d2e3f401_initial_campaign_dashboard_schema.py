"""Initial campaign dashboard schema

Creates users and sessions, customers, campaigns with delivery logs and
product details, A/B tests with variations and per-customer results, the
analytics cache and landing page tracking tables.

Revision ID: a1c0d2e3f401
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect

revision: str = 'a1c0d2e3f401'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(table):
    """Check if table already exists (init_db may have created it)."""
    return table in sa_inspect(op.get_bind()).get_table_names()


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    if not _has_table('users'):
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('display_name', sa.String(), nullable=True),
            sa.Column('is_active', sa.Boolean(), default=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
            sa.Column('last_login', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if not _has_table('user_sessions'):
        op.create_table(
            'user_sessions',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('token', sa.String(64), nullable=False),
            sa.Column('user_agent', sa.String(), nullable=True),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        )
        op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])
        op.create_index('ix_user_sessions_token', 'user_sessions', ['token'], unique=True)
        op.create_index('ix_user_sessions_expires_at', 'user_sessions', ['expires_at'])

    if not _has_table('customers'):
        op.create_table(
            'customers',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('phone', sa.String(), nullable=False),
            sa.Column('location', sa.String(), default=''),
            sa.Column('country', sa.String(), nullable=True),
            sa.Column('city', sa.String(), nullable=True),
            sa.Column('age', sa.Integer(), nullable=True),
            sa.Column('income', sa.Float(), nullable=True),
            sa.Column('total_spent', sa.Float(), default=0.0),
            sa.Column('total_purchases', sa.Integer(), default=0),
            sa.Column('mnt_wines', sa.Float(), nullable=True),
            sa.Column('mnt_fruits', sa.Float(), nullable=True),
            sa.Column('mnt_meat_products', sa.Float(), nullable=True),
            sa.Column('mnt_gold_prods', sa.Float(), nullable=True),
            sa.Column('num_web_purchases', sa.Integer(), nullable=True),
            sa.Column('num_store_purchases', sa.Integer(), nullable=True),
            sa.Column('num_catalog_purchases', sa.Integer(), nullable=True),
            sa.Column('num_web_visits_month', sa.Integer(), nullable=True),
            sa.Column('kidhome', sa.Integer(), nullable=True),
            sa.Column('teenhome', sa.Integer(), nullable=True),
            sa.Column('recency', sa.Integer(), nullable=True),
            sa.Column('campaigns_accepted', sa.Integer(), default=0),
            sa.Column('response', sa.Boolean(), default=False),
            sa.Column('complain', sa.Boolean(), default=False),
            sa.Column('opt_out', sa.Boolean(), nullable=False, default=False),
            *_timestamps(),
        )
        op.create_index('ix_customers_user_id', 'customers', ['user_id'])
        op.create_index('ix_customers_email', 'customers', ['email'])
        op.create_index('ix_customers_opt_out', 'customers', ['opt_out'])

    if not _has_table('campaigns'):
        op.create_table(
            'campaigns',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('type', sa.String(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('target_audience', sa.String(), nullable=False),
            sa.Column('message_template', sa.Text(), nullable=False),
            sa.Column('schedule_type', sa.String(), nullable=False),
            sa.Column('scheduled_time', sa.DateTime(), nullable=True),
            sa.Column('ai_optimization', sa.Boolean(), default=False),
            sa.Column('audience_count', sa.Integer(), default=0),
            sa.Column('sent_count', sa.Integer(), default=0),
            sa.Column('opened_count', sa.Integer(), default=0),
            sa.Column('clicked_count', sa.Integer(), default=0),
            sa.Column('ctr', sa.Float(), nullable=True),
            sa.Column('total_revenue', sa.Float(), default=0.0),
            sa.Column('total_cost', sa.Float(), default=0.0),
            sa.Column('roi', sa.Float(), nullable=True),
            sa.Column('start_date', sa.DateTime(), nullable=True),
            sa.Column('end_date', sa.DateTime(), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_campaigns_user_id', 'campaigns', ['user_id'])
        op.create_index('ix_campaigns_status', 'campaigns', ['status'])
        op.create_index('ix_campaigns_scheduled_time', 'campaigns', ['scheduled_time'])

    if not _has_table('campaign_logs'):
        op.create_table(
            'campaign_logs',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('campaign_id', sa.Integer(), sa.ForeignKey('campaigns.id', ondelete='SET NULL'), nullable=True),
            sa.Column('campaign_name', sa.String(), nullable=False),
            sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
            sa.Column('channel', sa.String(), nullable=False),
            sa.Column('recipient_phone', sa.String(), nullable=True),
            sa.Column('recipient_email', sa.String(), nullable=True),
            sa.Column('message_content', sa.Text(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('error_message', sa.Text(), nullable=True),
            sa.Column('delivery_id', sa.String(), nullable=True),
            sa.Column('sent_at', sa.DateTime(), nullable=True),
            sa.Column('delivered_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        )
        for column in ('user_id', 'campaign_id', 'customer_id', 'status'):
            op.create_index(f'ix_campaign_logs_{column}', 'campaign_logs', [column])

    if not _has_table('product_details'):
        op.create_table(
            'product_details',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('campaign_id', sa.Integer(), sa.ForeignKey('campaigns.id', ondelete='SET NULL'), nullable=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('price', sa.String(), nullable=True),
            sa.Column('features', sa.Text(), nullable=True),
            sa.Column('benefits', sa.Text(), nullable=True),
            sa.Column('offer', sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_product_details_user_id', 'product_details', ['user_id'])

    if not _has_table('ab_tests'):
        op.create_table(
            'ab_tests',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('campaign_id', sa.Integer(), sa.ForeignKey('campaigns.id', ondelete='CASCADE'), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('traffic_split', sa.Integer(), nullable=False),
            sa.Column('customer_count', sa.Integer(), nullable=True),
            sa.Column('target_audience', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('winner_variation', sa.String(), nullable=True),
            sa.Column('confidence_level', sa.Float(), nullable=True),
            sa.Column('started_at', sa.DateTime(), nullable=True),
            sa.Column('completed_at', sa.DateTime(), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_ab_tests_campaign_id', 'ab_tests', ['campaign_id'])
        op.create_index('ix_ab_tests_status', 'ab_tests', ['status'])

    if not _has_table('ab_test_variations'):
        op.create_table(
            'ab_test_variations',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('ab_test_id', sa.Integer(), sa.ForeignKey('ab_tests.id', ondelete='CASCADE'), nullable=False),
            sa.Column('variation_name', sa.String(), nullable=False),
            sa.Column('message_template', sa.Text(), nullable=False),
            sa.Column('traffic_allocation', sa.Float(), nullable=True),
            sa.Column('audience_count', sa.Integer(), default=0),
            sa.Column('sent_count', sa.Integer(), default=0),
            sa.Column('opened_count', sa.Integer(), default=0),
            sa.Column('read_count', sa.Integer(), default=0),
            sa.Column('clicked_count', sa.Integer(), default=0),
            sa.Column('conversion_count', sa.Integer(), default=0),
            sa.Column('reply_count', sa.Integer(), default=0),
            sa.Column('ctr', sa.Float(), default=0.0),
            sa.Column('conversion_rate', sa.Float(), default=0.0),
            sa.Column('is_winner', sa.Boolean(), default=False),
            *_timestamps(),
            sa.UniqueConstraint('ab_test_id', 'variation_name', name='uq_ab_variation_name'),
        )
        op.create_index('ix_ab_test_variations_ab_test_id', 'ab_test_variations', ['ab_test_id'])

    if not _has_table('ab_test_results'):
        op.create_table(
            'ab_test_results',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('ab_test_id', sa.Integer(), sa.ForeignKey('ab_tests.id', ondelete='CASCADE'), nullable=False),
            sa.Column('variation_id', sa.Integer(), sa.ForeignKey('ab_test_variations.id', ondelete='CASCADE'), nullable=False),
            sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
            sa.Column('assigned_at', sa.DateTime(), nullable=False),
            sa.Column('message_sent', sa.Boolean(), default=False),
            sa.Column('message_sent_at', sa.DateTime(), nullable=True),
            sa.Column('opened', sa.Boolean(), default=False),
            sa.Column('opened_at', sa.DateTime(), nullable=True),
            sa.Column('clicked', sa.Boolean(), default=False),
            sa.Column('clicked_at', sa.DateTime(), nullable=True),
            sa.Column('converted', sa.Boolean(), default=False),
            sa.Column('converted_at', sa.DateTime(), nullable=True),
            sa.Column('replied', sa.Boolean(), default=False),
            sa.Column('replied_at', sa.DateTime(), nullable=True),
            sa.Column('revenue', sa.Float(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint('ab_test_id', 'customer_id', name='uq_ab_result_test_customer'),
        )
        for column in ('ab_test_id', 'variation_id', 'customer_id'):
            op.create_index(f'ix_ab_test_results_{column}', 'ab_test_results', [column])

    if not _has_table('analytics_cache'):
        op.create_table(
            'analytics_cache',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('cache_key', sa.String(), nullable=False),
            sa.Column('data', sa.JSON(), nullable=False),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint('user_id', 'cache_key', name='uq_analytics_cache_user_key'),
        )
        op.create_index('ix_analytics_cache_user_id', 'analytics_cache', ['user_id'])
        op.create_index('ix_analytics_cache_expires_at', 'analytics_cache', ['expires_at'])

    for table, extra in (
        ('page_visits', [
            sa.Column('utm_content', sa.String(), nullable=True),
            sa.Column('utm_term', sa.String(), nullable=True),
            sa.Column('referrer', sa.Text(), nullable=True),
        ]),
        ('click_events', [
            sa.Column('button_id', sa.String(), nullable=False),
            sa.Column('button_text', sa.String(), nullable=True),
        ]),
    ):
        if _has_table(table):
            continue
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('page_path', sa.String(), nullable=False),
            sa.Column('variation_id', sa.Integer(), sa.ForeignKey('ab_test_variations.id', ondelete='SET NULL'), nullable=True),
            sa.Column('session_id', sa.String(), nullable=True),
            sa.Column('utm_source', sa.String(), nullable=True),
            sa.Column('utm_medium', sa.String(), nullable=True),
            sa.Column('utm_campaign', sa.String(), nullable=True),
            *extra,
            sa.Column('user_agent', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        )
        for column in ('page_path', 'variation_id', 'session_id'):
            op.create_index(f'ix_{table}_{column}', table, [column])


def downgrade() -> None:
    for table in (
        'click_events', 'page_visits', 'analytics_cache',
        'ab_test_results', 'ab_test_variations', 'ab_tests',
        'product_details', 'campaign_logs', 'campaigns',
        'customers', 'user_sessions', 'users',
    ):
        if _has_table(table):
            op.drop_table(table)
