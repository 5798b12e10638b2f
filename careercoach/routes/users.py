import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from careercoach.auth.dependencies import get_token_subject
from careercoach.database import get_db
from careercoach.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


class ProfileUpdate(BaseModel):
    industry: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0)
    skills: Optional[List[str]] = None
    email: Optional[str] = None
    name: Optional[str] = None


class ProfileResponse(BaseModel):
    id: int
    email: Optional[str]
    name: Optional[str]
    industry: Optional[str]
    experience: Optional[int]
    skills: Optional[List[str]]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


@router.get("/me", response_model=ProfileResponse)
async def get_profile(
    subject: str = Depends(get_token_subject),
    db: Session = Depends(get_db)
):
    """Get the caller's profile"""
    user = db.query(User).filter(User.external_id == subject).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User profile not found"
        )
    return user


@router.put("/me", response_model=ProfileResponse)
async def update_profile(
    profile: ProfileUpdate,
    subject: str = Depends(get_token_subject),
    db: Session = Depends(get_db)
):
    """Create or update the caller's profile (onboarding)"""
    user = db.query(User).filter(User.external_id == subject).first()

    # Check if email is taken by someone else
    if profile.email:
        email_owner = db.query(User).filter(
            User.email == profile.email,
            User.external_id != subject
        ).first()
        if email_owner:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

    created = user is None
    if created:
        user = User(external_id=subject)
        db.add(user)

    for field_name, value in profile.model_dump(exclude_unset=True).items():
        setattr(user, field_name, value)

    try:
        db.commit()
        db.refresh(user)
    except Exception:
        db.rollback()
        raise

    logger.info("%s profile for user %s", "Created" if created else "Updated", user.id)
    return user
