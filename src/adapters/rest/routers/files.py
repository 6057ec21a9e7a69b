"""File tree endpoint for the workspace explorer."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from adapters.rest.dependencies import get_factory
from adapters.rest.schemas import FileTreeOut
from factory import ServiceFactory

router = APIRouter(prefix="/api", tags=["files"])


@router.get("/file-tree", response_model=FileTreeOut, response_model_exclude_none=True)
async def file_tree(factory: ServiceFactory = Depends(get_factory)):
    """Workspace tree, three levels deep, directories first."""
    return {"tree": factory.create_file_tree_service().get_tree()}
