"""Clinic billing tables: clinics, subscriptions, payments, billing_events

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'clinics',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('subscription_status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('subscription_plan', sa.String(), nullable=True),
        sa.Column('subscription_expires_at', sa.DateTime(), nullable=True),
        sa.Column('billing_customer_id', sa.String(), nullable=True),
        sa.Column('billing_subscription_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_clinics_subscription_status', 'clinics', ['subscription_status'])
    op.create_index('ix_clinics_billing_customer_id', 'clinics', ['billing_customer_id'])
    op.create_index('ix_clinics_billing_subscription_id', 'clinics', ['billing_subscription_id'])

    op.create_table(
        'subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('clinic_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('billing_subscription_id', sa.String(), nullable=False),
        sa.Column('billing_customer_id', sa.String(), nullable=True),
        sa.Column('plan', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('current_period_start', sa.DateTime(), nullable=True),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('last_event_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ),
    )
    # Unique: the upsert target and the join key for every provider event
    op.create_index('ix_subscriptions_billing_subscription_id', 'subscriptions', ['billing_subscription_id'], unique=True)
    op.create_index('ix_subscriptions_clinic_id', 'subscriptions', ['clinic_id'])
    op.create_index('ix_subscriptions_billing_customer_id', 'subscriptions', ['billing_customer_id'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('ix_subscriptions_current_period_end', 'subscriptions', ['current_period_end'])

    op.create_table(
        'payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('clinic_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('billing_payment_intent_id', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ),
    )
    op.create_index('ix_payments_billing_payment_intent_id', 'payments', ['billing_payment_intent_id'], unique=True)
    op.create_index('ix_payments_clinic_id', 'payments', ['clinic_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_created_at', 'payments', ['created_at'])

    op.create_table(
        'billing_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('stripe_event_id', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('payload', postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column('outcome', sa.String(), nullable=False),
        sa.Column('received_at', sa.DateTime(), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_billing_events_stripe_event_id', 'billing_events', ['stripe_event_id'], unique=True)
    op.create_index('ix_billing_events_type', 'billing_events', ['type'])
    op.create_index('ix_billing_events_received_at', 'billing_events', ['received_at'])


def downgrade() -> None:
    op.drop_table('billing_events')
    op.drop_table('payments')
    op.drop_table('subscriptions')
    op.drop_table('clinics')
