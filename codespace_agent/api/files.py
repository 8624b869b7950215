"""File, directory and search routes."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from codespace_agent.api.deps import Workspace, require_auth

router = APIRouter(prefix="/api", dependencies=[Depends(require_auth)], tags=["files"])


class WriteFileReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(min_length=1)
    content: str
    create_dirs: bool = Field(default=True, alias="createDirs")


class UpdateFileReq(BaseModel):
    path: str = Field(min_length=1)
    content: str


class BatchReadReq(BaseModel):
    files: List[Any]


class BatchCreateReq(BaseModel):
    files: List[Dict[str, Any]]


class TransferReq(BaseModel):
    source: str = Field(min_length=1)
    destination: str = Field(min_length=1)


class MkdirReq(BaseModel):
    path: str = Field(min_length=1)
    recursive: bool = True


@router.get("/files")
def read_file(workspace: Workspace, path: Optional[str] = None) -> Dict[str, Any]:
    return workspace.read_file(path).to_dict()


@router.post("/files")
def write_file(body: WriteFileReq, workspace: Workspace) -> Dict[str, Any]:
    stats = workspace.write_file(body.path, body.content, create_dirs=body.create_dirs)
    return {"success": True, "path": body.path, "stats": stats.to_dict()}


@router.put("/files")
def update_file(body: UpdateFileReq, workspace: Workspace) -> Dict[str, Any]:
    stats = workspace.update_file(body.path, body.content)
    return {"success": True, "path": body.path, "stats": stats.to_dict()}


@router.delete("/files")
def delete_file(
    workspace: Workspace, path: Optional[str] = None, recursive: bool = False
) -> Dict[str, Any]:
    workspace.delete(path, recursive=recursive)
    return {"success": True, "path": path, "deleted": True}


@router.post("/files/read")
def read_files(body: BatchReadReq, workspace: Workspace) -> Dict[str, Any]:
    results = workspace.read_many(body.files)
    return {"success": True, "files": [item.to_dict() for item in results]}


@router.post("/files/create")
def create_files(body: BatchCreateReq, workspace: Workspace) -> Dict[str, Any]:
    results = workspace.create_many(body.files)
    return {"success": True, "files": [item.to_dict() for item in results]}


@router.post("/files/copy")
def copy_path(body: TransferReq, workspace: Workspace) -> Dict[str, Any]:
    workspace.copy(body.source, body.destination)
    return {"success": True, "source": body.source, "destination": body.destination}


@router.post("/files/move")
def move_path(body: TransferReq, workspace: Workspace) -> Dict[str, Any]:
    workspace.move(body.source, body.destination)
    return {"success": True, "source": body.source, "destination": body.destination}


@router.get("/stat")
def stat_path(workspace: Workspace, path: Optional[str] = None) -> Dict[str, Any]:
    return {"path": path, "stats": workspace.stat(path).to_dict()}


@router.get("/ls")
def list_directory(
    workspace: Workspace,
    path: str = ".",
    recursive: bool = False,
    with_content: bool = Query(default=False, alias="withContent"),
    detailed: bool = False,
) -> Dict[str, Any]:
    entries = workspace.list_files(
        path, recursive=recursive, with_content=with_content, detailed=detailed
    )
    return {"path": path, "entries": [entry.to_dict() for entry in entries]}


@router.post("/mkdir")
def make_directory(body: MkdirReq, workspace: Workspace) -> Dict[str, Any]:
    workspace.mkdirs(body.path, recursive=body.recursive)
    return {"success": True, "path": body.path}


@router.get("/search")
def search(
    workspace: Workspace,
    query: str = "",
    path: str = ".",
    max_depth: int = Query(default=5, alias="maxDepth", ge=0, le=32),
) -> Dict[str, Any]:
    hits = workspace.search(query, path, max_depth=max_depth)
    return {"query": query, "results": [hit.to_dict() for hit in hits], "count": len(hits)}
