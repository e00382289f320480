from fastapi import APIRouter

from blog.audit import audit
from blog.dependencies import AdminPrincipal, DbSession
from blog.schemas import RoleCreate, RoleResponse, RoleUpdate
from blog.services import role_service

router = APIRouter(prefix="/api/v1/roles", tags=["roles"])


@router.get("", response_model=list[RoleResponse])
async def list_roles(principal: AdminPrincipal, db: DbSession):
    return await role_service.get_roles(db)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(role_id: int, principal: AdminPrincipal, db: DbSession):
    return await role_service.get_role(db, role_id)


@router.post("", status_code=201, response_model=RoleResponse)
async def create_role(data: RoleCreate, principal: AdminPrincipal, db: DbSession):
    role = await role_service.create_role(db, data.name, data.description)
    audit.log_user_action("ROLE_CREATE", f"Created role: {role.name}", principal.user_id, principal.name)
    return role


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(role_id: int, data: RoleUpdate, principal: AdminPrincipal, db: DbSession):
    role = await role_service.update_role(db, role_id, data)
    audit.log_user_action("ROLE_UPDATE", f"Updated role ID: {role_id}", principal.user_id, principal.name)
    return role


@router.delete("/{role_id}", status_code=204)
async def delete_role(role_id: int, principal: AdminPrincipal, db: DbSession):
    await role_service.delete_role(db, role_id)
    audit.log_user_action("ROLE_DELETE", f"Deleted role ID: {role_id}", principal.user_id, principal.name)
