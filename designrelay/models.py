# designrelay/models.py
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WebsiteRequest(CamelModel):
    # Optional so a missing field maps to our own 400 instead of a 422
    website_url: Optional[str] = Field(default=None, alias="websiteUrl")


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Job(CamelModel):
    id: str = Field(alias="jobId")
    prompt: str
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    status: JobStatus = JobStatus.PENDING
    result_url: Optional[str] = Field(default=None, alias="resultUrl")
    error_detail: Optional[str] = Field(default=None, alias="errorDetail")


class CompletedPayload(CamelModel):
    job_id: str = Field(alias="jobId")
    status: Literal["completed"] = "completed"
    generated_url: str = Field(alias="generatedUrl")


class FailedPayload(CamelModel):
    job_id: str = Field(alias="jobId")
    status: Literal["error"] = "error"
    error_message: str = Field(alias="errorMessage")


WebhookPayload = Union[CompletedPayload, FailedPayload]


class GenerateAccepted(CamelModel):
    status: str = "processing"
    job_id: str = Field(alias="jobId")


class JobSummary(CamelModel):
    job_id: str = Field(alias="jobId")
    status: JobStatus
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")


class DownloadedImage(CamelModel):
    original_url: str = Field(alias="originalUrl")
    local_path: str = Field(alias="localPath")


class ImageListResult(CamelModel):
    status: str = "success"
    website_url: str = Field(alias="websiteUrl")
    image_count: int = Field(alias="imageCount")
    images: List[str]


class ImageDownloadResult(CamelModel):
    status: str = "success"
    website_url: str = Field(alias="websiteUrl")
    image_count: int = Field(alias="imageCount")
    images: List[DownloadedImage]
