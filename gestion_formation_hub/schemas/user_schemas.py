"""
Schémas Pydantic pour les utilisateurs
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..models.enums import UserRole
from .base import ENTREE_CAMEL, SORTIE_CAMEL


class UserCreate(BaseModel):
    model_config = ENTREE_CAMEL

    email: EmailStr
    external_id: Optional[str] = Field(None, description="Identifiant chez le fournisseur d'identité")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.USER
    is_active: bool = True


class UserUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserActifUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    is_active: bool


class UserResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    external_id: Optional[str] = None
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
