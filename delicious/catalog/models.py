from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Location(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(
        ..., min_length=2, max_length=2, description="[longitude, latitude]"
    )
    address: str = Field(..., min_length=1)


class StoreIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    location: Location
    photo: str | None = Field(
        default=None, description="Filename produced by the image upload step"
    )

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, tags: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class StoreOut(BaseModel):
    id: str
    name: str
    slug: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    created: datetime
    location: Location
    photo: str | None = None
    author: str


class ReviewIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(..., min_length=1, max_length=2000)
    rating: int = Field(..., ge=1, le=5)


class ReviewOut(BaseModel):
    id: str
    author: str
    store: str
    text: str
    rating: int
    created: datetime


class StoreDetail(StoreOut):
    author_name: str | None = None
    reviews: list[ReviewOut] = Field(default_factory=list)


class StoreSummary(BaseModel):
    id: str
    slug: str
    name: str
    description: str = ""
    location: Location
    photo: str | None = None


class SearchResult(StoreOut):
    score: float


class TagCount(BaseModel):
    tag: str
    count: int


class TagsResponse(BaseModel):
    tag: str | None
    tags: list[TagCount]
    stores: list[StoreOut]


class TopStore(BaseModel):
    id: str
    name: str
    slug: str
    photo: str | None = None
    average_rating: float
    review_count: int
    reviews: list[ReviewOut] = Field(default_factory=list)


class StorePage(BaseModel):
    items: list[StoreOut]
    page: int
    total_pages: int
    total_count: int
    redirect_to: int | None = None


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    hearts: list[str] = Field(default_factory=list)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
