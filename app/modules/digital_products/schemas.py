from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

FileType = Literal["pdf", "video", "audio", "zip", "doc", "docx"]


class DigitalProductCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: FileType
    file_size: int = Field(0, ge=0)
    file_url: str = Field(..., min_length=1)
    download_limit: Optional[int] = Field(None, ge=1)
    expires_at: Optional[datetime] = None


class DigitalProductUpdate(BaseModel):
    file_name: Optional[str] = Field(None, min_length=1, max_length=255)
    file_type: Optional[FileType] = None
    file_size: Optional[int] = Field(None, ge=0)
    file_url: Optional[str] = Field(None, min_length=1)
    download_limit: Optional[int] = Field(None, ge=1)
    expires_at: Optional[datetime] = None


class DigitalProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    file_name: str
    file_type: str
    file_size: int
    download_limit: Optional[int] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class DigitalProductAdminOut(DigitalProductOut):
    # URL bruta só para o admin; cliente recebe via /download
    file_url: str


class UserDownloadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    digital_product_id: int
    download_count: int
    last_downloaded_at: datetime


class DownloadStatsOut(BaseModel):
    digital_product_id: int
    total_downloads: int
    unique_users: int


class DownloadLinkOut(BaseModel):
    digital_product_id: int
    download_url: str
    token: str
    expires_at: datetime
    download_count: int
    download_limit: Optional[int] = None


class DownloadFileOut(BaseModel):
    file_url: str
    file_name: str
    file_type: str
    file_size: int
