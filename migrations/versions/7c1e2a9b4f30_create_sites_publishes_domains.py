"""create sites, publishes and domains tables

Revision ID: 7c1e2a9b4f30
Revises:
Create Date: 2026-10-18 20:40:12.418903

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7c1e2a9b4f30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('sites',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(length=36), nullable=True),
    sa.Column('slug', sa.String(length=100), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('status', sa.String(length=50), nullable=False),
    sa.Column('settings', sa.JSON(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('slug')
    )
    op.create_index('ix_sites_tenant_id', 'sites', ['tenant_id'], unique=False)

    op.create_table('publishes',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('site_id', sa.String(length=36), nullable=False),
    sa.Column('version', sa.Integer(), nullable=False),
    sa.Column('snapshot', sa.JSON(), nullable=False),
    sa.Column('is_current', sa.Boolean(), nullable=False),
    sa.Column('changelog', sa.Text(), nullable=True),
    sa.Column('published_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('site_id', 'version', name='uq_publish_site_version')
    )
    op.create_index('ix_publishes_site_id', 'publishes', ['site_id'], unique=False)
    op.create_index(
        'uq_publish_site_current', 'publishes', ['site_id'], unique=True,
        postgresql_where=sa.text('is_current'),
        sqlite_where=sa.text('is_current = 1'),
    )

    op.create_table('domains',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('site_id', sa.String(length=36), nullable=False),
    sa.Column('domain', sa.String(length=253), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('ssl_status', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
    sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('domain')
    )
    op.create_index('ix_domains_site_id', 'domains', ['site_id'], unique=False)
    # Resolution looks domains up by (domain, status)
    op.create_index('ix_domains_domain_status', 'domains', ['domain', 'status'], unique=False)


def downgrade():
    op.drop_index('ix_domains_domain_status', table_name='domains')
    op.drop_index('ix_domains_site_id', table_name='domains')
    op.drop_table('domains')
    op.drop_index('uq_publish_site_current', table_name='publishes')
    op.drop_index('ix_publishes_site_id', table_name='publishes')
    op.drop_table('publishes')
    op.drop_index('ix_sites_tenant_id', table_name='sites')
    op.drop_table('sites')
