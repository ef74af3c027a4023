"""
Schémas Pydantic pour la veille (réglementaire, métier, innovation)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.enums import StatutVeille, TypeVeille
from .base import DateUTC, ENTREE_CAMEL, SORTIE_CAMEL


class VeilleCreate(BaseModel):
    model_config = ENTREE_CAMEL

    titre: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    type: TypeVeille
    statut: StatutVeille = StatutVeille.NOUVELLE
    avancement: int = Field(0, ge=0, le=100)
    date_echeance: Optional[DateUTC] = None


class VeilleUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    titre: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    type: Optional[TypeVeille] = None
    statut: Optional[StatutVeille] = None
    avancement: Optional[int] = Field(None, ge=0, le=100)
    date_echeance: Optional[DateUTC] = None


class CommentaireCreate(BaseModel):
    contenu: str = Field(..., min_length=1)


class CommentaireResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    contenu: str
    utilisateur: str
    date_creation: datetime


class HistoriqueResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    action: str
    details: Optional[str] = None
    utilisateur: str
    date_creation: datetime


class VeilleResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    titre: str
    description: str
    type: TypeVeille
    statut: StatutVeille
    avancement: int
    date_echeance: Optional[datetime] = None
    date_creation: datetime
    date_modification: Optional[datetime] = None


class VeilleDetailResponse(VeilleResponse):
    commentaires: List[CommentaireResponse] = []
    historique: List[HistoriqueResponse] = []
