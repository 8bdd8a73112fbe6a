"""Branches router for mbestore API."""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Request

from mbestore.api.auth import get_context, get_current_user
from mbestore.errors import NotFoundError
from mbestore.managers.base import ManagerContext
from mbestore.utils.option_parser import (
    BRANCH_FIND_OPTIONS,
    BRANCH_WRITE_OPTIONS,
    parse_options,
)

router = APIRouter()

BRANCHES_PATH = "/orgs/{org_id}/projects/{project_id}/branches"


def _query_options(request: Request, valid: Dict[str, str]) -> Dict[str, Any]:
    params = {k: v for k, v in request.query_params.items() if k != "ids"}
    return parse_options(params, valid)


def _query_ids(request: Request) -> Any:
    ids = request.query_params.get("ids")
    return ids.split(",") if ids else None


@router.get(BRANCHES_PATH)
def get_branches(
    org_id: str,
    project_id: str,
    request: Request,
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: ManagerContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    """Find branches; ``ids`` is an optional comma separated list."""
    options = _query_options(request, BRANCH_FIND_OPTIONS)
    return ctx.branches.find(user, org_id, project_id, _query_ids(request), options)


@router.post(BRANCHES_PATH)
def post_branches(
    org_id: str,
    project_id: str,
    request: Request,
    branches: Any = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: ManagerContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    """Create branches by cloning their source."""
    options = _query_options(request, BRANCH_WRITE_OPTIONS)
    return ctx.branches.create(user, org_id, project_id, branches, options)


@router.patch(BRANCHES_PATH)
def patch_branches(
    org_id: str,
    project_id: str,
    request: Request,
    branches: Any = Body(...),
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: ManagerContext = Depends(get_context),
) -> List[Dict[str, Any]]:
    """Update branches."""
    options = _query_options(request, BRANCH_WRITE_OPTIONS)
    return ctx.branches.update(user, org_id, project_id, branches, options)


@router.delete(BRANCHES_PATH)
def delete_branches(
    org_id: str,
    project_id: str,
    request: Request,
    branches: Any = Body(None),
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: ManagerContext = Depends(get_context),
) -> List[str]:
    """Delete branches named in the body or the ``ids`` query parameter."""
    ids = branches if branches is not None else _query_ids(request)
    return ctx.branches.remove(user, org_id, project_id, ids)


@router.get(BRANCHES_PATH + "/{branch_id}")
def get_branch(
    org_id: str,
    project_id: str,
    branch_id: str,
    request: Request,
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: ManagerContext = Depends(get_context),
) -> Dict[str, Any]:
    """Find a single branch."""
    options = _query_options(request, BRANCH_FIND_OPTIONS)
    found = ctx.branches.find(user, org_id, project_id, branch_id, options)
    if not found:
        raise NotFoundError(f"Branch [{branch_id}] not found.", "warn")
    return found[0]


@router.delete(BRANCHES_PATH + "/{branch_id}")
def delete_branch(
    org_id: str,
    project_id: str,
    branch_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    ctx: ManagerContext = Depends(get_context),
) -> str:
    """Delete a single branch."""
    return ctx.branches.remove(user, org_id, project_id, branch_id)[0]
