# src/api/models.py — v1
"""Request and response payloads of the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SimilarImageEntry(BaseModel):
    """One ranked match."""

    image_name: str
    distance: float  # lower is closer
    data: str | None = None  # stored image as base64, when requested


class CompareImageReq(BaseModel):
    project_name: str
    data: str  # query image as base64
    with_image: bool = False
    top_k: int | None = Field(default=None, ge=1)


class CompareImageResp(BaseModel):
    success: bool = True
    message: str = "success"
    project_name: str
    compare_result: list[SimilarImageEntry] = Field(default_factory=list)


class UploadImageReq(BaseModel):
    project_name: str
    image_name: str
    data: str  # image as base64


class UploadImageResp(BaseModel):
    success: bool = True
    message: str
    token: str


class ProjectListResp(BaseModel):
    projects: dict[str, int] = Field(default_factory=dict)


class ErrorResp(BaseModel):
    success: bool = False
    message: str
