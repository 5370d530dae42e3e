from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class GameCreateIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    title_ge: Optional[str] = Field(None, max_length=255)
    title_ru: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    description_ge: Optional[str] = None
    description_ru: Optional[str] = None
    price: int = Field(..., ge=0, description="Price in cents")
    original_price: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = Field(None, max_length=1024)
    category: Optional[str] = Field(None, max_length=64)
    platform: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    rating: Optional[float] = Field(None, ge=0, le=5)

    @field_validator("platform")
    @classmethod
    def _strip_platforms(cls, v):
        return [p.strip() for p in v if p and p.strip()]


class GameUpdateIn(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    title_ge: Optional[str] = Field(None, max_length=255)
    title_ru: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    description_ge: Optional[str] = None
    description_ru: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    original_price: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = Field(None, max_length=1024)
    category: Optional[str] = Field(None, max_length=64)
    platform: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    rating: Optional[float] = Field(None, ge=0, le=5)

    model_config = {"extra": "forbid"}   # unknown fields are a 422, not silently dropped


class GameActiveIn(BaseModel):
    is_active: bool
