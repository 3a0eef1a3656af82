from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    name_bn: Optional[str] = None
    type: str = Field(..., description="Key from the document type catalog")
    category: Optional[str] = None
    category_bn: Optional[str] = None
    description: Optional[str] = None
    description_bn: Optional[str] = None
    template: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None
    required_credits: Optional[int] = Field(None, gt=0)
    is_active: bool = True


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    name_bn: Optional[str] = None
    category: Optional[str] = None
    category_bn: Optional[str] = None
    description: Optional[str] = None
    description_bn: Optional[str] = None
    template: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None
    required_credits: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: Optional[str] = None
    name: str
    name_bn: Optional[str] = None
    type: str
    category: Optional[str] = None
    category_bn: Optional[str] = None
    description: Optional[str] = None
    description_bn: Optional[str] = None
    template: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None
    required_credits: int
    is_active: bool
    usage_count: int
    created_at: datetime


class DocumentGenerate(BaseModel):
    document_type: str
    template_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=500)
    recipient_name: Optional[str] = Field(None, max_length=255)
    data: Dict[str, Any] = {}


class GeneratedDocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    user_id: Optional[str] = None
    template_id: Optional[str] = None
    document_type: str
    title: str
    recipient_name: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    file_size: Optional[int] = None
    status: str
    credits_used: int
    verification_code: str
    download_url: str
    created_at: datetime
