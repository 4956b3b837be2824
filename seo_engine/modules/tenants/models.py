"""Tenant database model."""

from sqlalchemy import Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from seo_engine.config import settings
from seo_engine.core.base_model import Base, TimestampMixin, UUIDMixin


class Tenant(Base, UUIDMixin, TimestampMixin):
    """Dealer tenant.

    Only the addressing fields live here; profile, plan and theming belong
    to the tenant management service.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # e.g. 'omegaveiculos' -> omegaveiculos.<tenant_base_domain>
    subdomain: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    # e.g. 'omegaveiculos.com.br' (stored without scheme or www.)
    custom_domain: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_tenants_active", "is_active"),
        CheckConstraint("char_length(subdomain) >= 2", name="ck_tenants_subdomain_min_length"),
    )

    def __repr__(self) -> str:
        return f"<Tenant {self.subdomain}>"

    @property
    def base_url(self) -> str:
        """Public origin of the tenant's portal, without trailing slash."""
        host = self.custom_domain or f"{self.subdomain}.{settings.tenant_base_domain}"
        return f"{settings.tenant_url_scheme}://{host}"
