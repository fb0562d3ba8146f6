from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)

class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, min_length=1, max_length=2000)

class ReviewOut(BaseModel):
    id: int
    rating: int
    comment: str
    company_id: int
    author_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CompanySummary(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class ReviewWithCompany(ReviewOut):
    company: Optional[CompanySummary] = None
