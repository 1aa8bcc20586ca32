"""
Feature modules enabled per tenant.
"""
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, String, UniqueConstraint
from sqlalchemy.orm import relationship

from agrohub.models.base import Base, TenantBaseModel


class ModuleCode(str, PyEnum):
    DASHBOARD = "dashboard"
    CAMPO = "campo"
    EMPAQUE = "empaque"
    FINANZAS = "finanzas"
    INVENTARIO = "inventario"
    USUARIOS = "usuarios"
    TRABAJADORES = "trabajadores"
    AJUSTES = "ajustes"


class TenantModule(Base, TenantBaseModel):
    """Enabled/disabled flag for one module of one tenant."""

    __tablename__ = "tenant_modules"

    module_code = Column(String(50), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)

    tenant = relationship("Tenant", back_populates="modules")

    __table_args__ = (
        UniqueConstraint("tenant_id", "module_code", name="uq_tenant_modules_code"),
    )

    def __repr__(self) -> str:
        return f"<TenantModule {self.module_code} enabled={self.enabled}>"
