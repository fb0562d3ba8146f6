from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.review import ReviewOut

class CompanyBase(BaseModel):
    description: Optional[str] = Field(default=None, max_length=500)
    industry: Optional[str] = None
    location: Optional[str] = None
    alias: Optional[str] = None
    name_en: Optional[str] = None
    modified_logo: Optional[str] = None

class CompanyCreate(CompanyBase):
    name: str = Field(min_length=1, max_length=50)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

class CompanyUpdate(CompanyBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

class CompanyOut(CompanyBase):
    id: int
    name: str
    average_rating: Optional[float] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CompanyDetail(CompanyOut):
    reviews: list[ReviewOut] = []
