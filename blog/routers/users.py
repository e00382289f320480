from fastapi import APIRouter

from blog.audit import audit
from blog.dependencies import AdminPrincipal, DbSession, ProfileEditor
from blog.schemas import ArticleResponse, UserResponse, UserUpdate
from blog.services import article_service, role_service, user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(principal: AdminPrincipal, db: DbSession):
    return await user_service.get_users(db)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, principal: ProfileEditor, db: DbSession):
    return await user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, data: UserUpdate, principal: ProfileEditor, db: DbSession):
    user = await user_service.update_user(db, user_id, data)
    audit.log_user_action(
        "PROFILE_EDIT", f"Edited profile of user ID: {user_id}", principal.user_id, principal.name
    )
    return user


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: int, principal: AdminPrincipal, db: DbSession):
    await user_service.delete_user(db, user_id)
    audit.log_user_action(
        "USER_DELETE", f"Deleted user ID: {user_id}", principal.user_id, principal.name
    )


@router.get("/{user_id}/articles", response_model=list[ArticleResponse])
async def list_user_articles(user_id: int, db: DbSession):
    await user_service.get_user(db, user_id)
    return await article_service.get_articles_by_author(db, user_id)


@router.post("/{user_id}/roles/{role_id}", response_model=UserResponse)
async def assign_role(user_id: int, role_id: int, principal: AdminPrincipal, db: DbSession):
    await role_service.assign_role_to_user(db, user_id, role_id)
    audit.log_user_action(
        "ROLE_ASSIGN", f"Assigned role ID {role_id} to user ID {user_id}",
        principal.user_id, principal.name,
    )
    return await user_service.get_user(db, user_id)


@router.delete("/{user_id}/roles/{role_id}", response_model=UserResponse)
async def remove_role(user_id: int, role_id: int, principal: AdminPrincipal, db: DbSession):
    await role_service.remove_role_from_user(db, user_id, role_id)
    audit.log_user_action(
        "ROLE_REMOVE", f"Removed role ID {role_id} from user ID {user_id}",
        principal.user_id, principal.name,
    )
    return await user_service.get_user(db, user_id)
