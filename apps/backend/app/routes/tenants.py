from typing import List

from fastapi import APIRouter, Depends

from app.core.auth import require_admin
from app.core.errors import AppError
from app.deps import get_tenants, http_error
from app.schemas.tenants import (
    EmbedCodeOut,
    PublicTenantConfig,
    TenantCreate,
    TenantOut,
    TenantStats,
    TenantUpdate,
)
from app.services.tenants import TenantService, tenant_out

router = APIRouter()
admin = [Depends(require_admin)]


@router.get("/{tenant_id}", response_model=PublicTenantConfig)
def get_public_config(tenant_id: str, tenants: TenantService = Depends(get_tenants)):
    """Widget-facing subset of the tenant configuration."""
    try:
        tenant = tenants.get(tenant_id)
    except AppError as e:
        raise http_error(e) from e
    # response_model trims this down to the public fields
    return tenant_out(tenant)


@router.get("/", response_model=List[TenantOut], dependencies=admin)
def list_tenants(tenants: TenantService = Depends(get_tenants)):
    return [tenant_out(t) for t in tenants.list_all()]


@router.post("/", response_model=TenantOut, status_code=201, dependencies=admin)
def create_tenant(body: TenantCreate, tenants: TenantService = Depends(get_tenants)):
    try:
        tenant = tenants.create(body)
    except AppError as e:
        raise http_error(e) from e
    return tenant_out(tenant, embed_code=tenants.embed_code(tenant.tenant_id))


@router.put("/{tenant_id}", response_model=TenantOut, dependencies=admin)
def update_tenant(tenant_id: str, body: TenantUpdate, tenants: TenantService = Depends(get_tenants)):
    try:
        tenant = tenants.update(tenant_id, body)
    except AppError as e:
        raise http_error(e) from e
    return tenant_out(tenant, embed_code=tenants.embed_code(tenant.tenant_id))


@router.delete("/{tenant_id}", dependencies=admin)
def delete_tenant(tenant_id: str, tenants: TenantService = Depends(get_tenants)):
    try:
        tenants.delete(tenant_id)
    except AppError as e:
        raise http_error(e) from e
    return {"message": "Tenant deleted successfully"}


@router.get("/{tenant_id}/stats", response_model=TenantStats, dependencies=admin)
def tenant_stats(tenant_id: str, tenants: TenantService = Depends(get_tenants)):
    try:
        return tenants.stats(tenant_id)
    except AppError as e:
        raise http_error(e) from e


@router.get("/{tenant_id}/embed", response_model=EmbedCodeOut, dependencies=admin)
def tenant_embed_code(tenant_id: str, tenants: TenantService = Depends(get_tenants)):
    try:
        return tenants.embed(tenant_id)
    except AppError as e:
        raise http_error(e) from e
