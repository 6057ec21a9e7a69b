"""Pydantic models for REST and WebSocket payload validation."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


# --- Health ---

class HealthOut(BaseModel):
    status: str = "ok"
    version: str


# --- File tree ---

class FileNode(BaseModel):
    name: str
    path: str
    type: Literal["directory", "file"]
    children: Optional[list[FileNode]] = None


class FileTreeOut(BaseModel):
    tree: list[FileNode] = Field(default_factory=list)


# --- WebSocket ---

class ClientMessage(BaseModel):
    """A frame sent by the browser: a chat line or a file tree request."""
    type: Literal["chat", "file_tree"]
    message: str = ""
