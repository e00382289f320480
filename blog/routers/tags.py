from fastapi import APIRouter

from blog.audit import audit
from blog.cache import cache
from blog.dependencies import CurrentPrincipal, DbSession, StaffPrincipal
from blog.schemas import TagCreate, TagResponse, TagUpdate
from blog.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse])
async def list_tags(db: DbSession):
    return await tag_service.get_tags(db)


@router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(tag_id: int, db: DbSession):
    return await tag_service.get_tag(db, tag_id)


@router.post("", status_code=201, response_model=TagResponse)
async def create_tag(data: TagCreate, principal: CurrentPrincipal, db: DbSession):
    tag = await tag_service.create_tag(db, data.name)
    audit.log_user_action("TAG_CREATE", f"Created tag: {tag.name}", principal.user_id, principal.name)
    return tag


@router.put("/{tag_id}", response_model=TagResponse)
async def update_tag(tag_id: int, data: TagUpdate, principal: StaffPrincipal, db: DbSession):
    tag = await tag_service.update_tag(db, tag_id, data)
    # Tag names are embedded in every cached article payload.
    await cache.invalidate_all_articles()
    audit.log_user_action("TAG_EDIT", f"Edited tag ID: {tag_id}", principal.user_id, principal.name)
    return tag


@router.delete("/{tag_id}", status_code=204)
async def delete_tag(tag_id: int, principal: StaffPrincipal, db: DbSession):
    await tag_service.delete_tag(db, tag_id)
    await cache.invalidate_all_articles()
    audit.log_user_action("TAG_DELETE", f"Deleted tag ID: {tag_id}", principal.user_id, principal.name)
