"""Audio restoration job records."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class RestoreJobStatus(BaseModel):
    status: str
    file_url: Optional[str] = None
    message: str


class RestoreJob(BaseModel):
    job_id: str
    language: str
    created_at: str
    status: str
    file_name: str


class RestoreJobList(BaseModel):
    jobs: list[RestoreJob] = Field(default_factory=list)


class RestoreJobCreated(BaseModel):
    job_id: str


class RestoreJobDeleted(BaseModel):
    status: str
    message: str


__all__ = [
    "RestoreJob",
    "RestoreJobCreated",
    "RestoreJobDeleted",
    "RestoreJobList",
    "RestoreJobStatus",
]
