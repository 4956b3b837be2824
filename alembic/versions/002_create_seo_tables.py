"""Create URL registry, redirect, sitemap and robots tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _tenant_fk() -> sa.Column:
    return sa.Column(
        "tenant_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create seo_url_entries, url_redirects, sitemap_configs, robots_configs."""
    # URL registry
    op.create_table(
        "seo_url_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("locale", sa.String(10), nullable=False),
        sa.Column("path", sa.String(500), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("canonical_url", sa.String(2000), nullable=True),
        sa.Column("is_indexable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("include_in_sitemap", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sitemap_priority", sa.Float(), nullable=False, server_default="0.5"),
        sa.Column("sitemap_changefreq", sa.String(20), nullable=False, server_default="weekly"),
        sa.Column("lastmod", sa.DateTime(timezone=True), nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("og_image", sa.String(2000), nullable=True),
        sa.Column("breadcrumbs", postgresql.JSONB(), nullable=True),
        sa.Column("structured_data_type", sa.String(50), nullable=True),
        sa.Column("structured_data_payload", postgresql.JSONB(), nullable=True),
        sa.Column("content_data", postgresql.JSONB(), nullable=True),
        sa.Column("content_templates", postgresql.JSONB(), nullable=True),
        sa.Column("route_params", postgresql.JSONB(), nullable=True),
        sa.Column("extra_meta", postgresql.JSONB(), nullable=True),
        sa.Column("redirect_type", sa.String(20), nullable=False, server_default="none"),
        sa.Column("redirect_target", sa.String(2000), nullable=True),
        sa.Column("redirect_reason", sa.String(100), nullable=True),
        sa.Column("previous_slug", sa.String(500), nullable=True),
        sa.Column("redirect_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "sitemap_priority >= 0 AND sitemap_priority <= 1",
            name="ck_seo_url_entries_priority_range",
        ),
        sa.CheckConstraint(
            "redirect_type IN ('none', '301', '302', 'canonical')",
            name="ck_seo_url_entries_redirect_type",
        ),
        sa.CheckConstraint(
            "redirect_type = 'none' OR (is_indexable = false AND include_in_sitemap = false)",
            name="ck_seo_url_entries_redirect_not_indexed",
        ),
    )
    op.create_index(
        "ix_seo_url_entries_tenant_locale_path",
        "seo_url_entries",
        ["tenant_id", "locale", "path"],
        unique=True,
    )
    op.create_index(
        "ix_seo_url_entries_sitemap",
        "seo_url_entries",
        ["tenant_id", "type", "include_in_sitemap"],
    )

    # Explicit redirects
    op.create_table(
        "url_redirects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("old_path", sa.String(500), nullable=False),
        sa.Column("new_path", sa.String(2000), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False, server_default="301"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("redirected_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status_code IN (301, 302, 307, 308)", name="ck_url_redirects_status_code"),
    )
    op.create_index(
        "ix_url_redirects_tenant_old_path",
        "url_redirects",
        ["tenant_id", "old_path"],
        unique=True,
    )

    # Sitemap configs
    op.create_table(
        "sitemap_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("priority", sa.Float(), nullable=False, server_default="0.5"),
        sa.Column("change_frequency", sa.String(20), nullable=False, server_default="daily"),
        sa.Column("config_data", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('index', 'images', 'videos', 'articles', 'vehicles', 'pages')",
            name="ck_sitemap_configs_type",
        ),
        sa.CheckConstraint("priority >= 0 AND priority <= 1", name="ck_sitemap_configs_priority_range"),
    )
    op.create_index("ix_sitemap_configs_tenant_url", "sitemap_configs", ["tenant_id", "url"], unique=True)

    # Robots configs
    op.create_table(
        "robots_configs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("locale", sa.String(10), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("user_agent_rules", postgresql.JSONB(), nullable=True),
        sa.Column("custom_rules", sa.Text(), nullable=True),
        sa.Column("host_directive", sa.String(255), nullable=True),
        sa.Column("sitemap_urls", postgresql.JSONB(), nullable=True),
        sa.Column("include_sitemap_index", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("include_sitemap_files", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_generated_by", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_robots_configs_tenant_locale", "robots_configs", ["tenant_id", "locale"], unique=True)


def downgrade() -> None:
    """Drop SEO tables."""
    op.drop_table("robots_configs")
    op.drop_table("sitemap_configs")
    op.drop_table("url_redirects")
    op.drop_table("seo_url_entries")
