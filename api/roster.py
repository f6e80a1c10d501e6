"""/users: the admin roster and its bulk actions."""

from uuid import UUID

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from api.base import success_response
from core.services.roster_service import RosterService, resolve_sort


class SelectionRequest(BaseModel):
    """Ids ticked in the roster."""

    ids: list[UUID] = Field(default_factory=list)


def create_roster_router(roster_service: RosterService) -> APIRouter:
    router = APIRouter(tags=["users"])

    @router.get("")
    def list_users(
        request: Request,
        sortBy: str | None = Query(None),
        sortOrder: str | None = Query(None),
    ):
        accounts = roster_service.list_accounts(sortBy, sortOrder)
        field, order = resolve_sort(sortBy, sortOrder)
        return success_response({
            "accounts": [a.model_dump(mode="json") for a in accounts],
            "sort_by": field.value,
            "sort_order": order.value,
            "current_account_id": str(request.state.account_id),
        }).model_dump(mode="json")

    @router.post("/block")
    def block_users(body: SelectionRequest | None = None):
        result = roster_service.block(body.ids if body else None)
        return success_response(result.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/unblock")
    def unblock_users(body: SelectionRequest | None = None):
        result = roster_service.unblock(body.ids if body else None)
        return success_response(result.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/delete")
    def delete_users(body: SelectionRequest | None = None):
        result = roster_service.delete(body.ids if body else None)
        return success_response(result.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/purge-unverified")
    def purge_unverified():
        result = roster_service.purge_unverified()
        return success_response(result.model_dump(mode="json")).model_dump(mode="json")

    return router
