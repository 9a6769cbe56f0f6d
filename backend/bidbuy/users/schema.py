from datetime import datetime
from typing import Optional

from pydantic import EmailStr

from ..models import CustomModel
from .models import UserRole


class UserPublic(CustomModel):
    id: int
    username: str
    profile_image_url: Optional[str] = None
    score: int
    review_count: int
    offer_level: int
    created_at: datetime


class UserMe(UserPublic):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    provider: str
    provider_id: str
    role: UserRole


class ProfileCounts(CustomModel):
    count_sale: int = 0
    count_like: int = 0
    count_offer: int = 0
    count_buy: int = 0
    count_review: int = 0


class MyProfileResponse(CustomModel):
    user: UserMe
    counts: ProfileCounts


class UserProfileResponse(CustomModel):
    user: UserPublic
    counts: ProfileCounts
