"""
Schémas Pydantic du suivi qualité : réclamations et actions correctives
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.enums import (
    OrigineActionCorrective, PrioriteActionCorrective, PrioriteReclamation,
    StatutActionCorrective, StatutReclamation,
)
from .base import DateUTC, ENTREE_CAMEL, SORTIE_CAMEL


# === Réclamations ===

class ReclamationCreate(BaseModel):
    model_config = ENTREE_CAMEL

    nom: str = Field(..., min_length=1)
    email: EmailStr
    telephone: Optional[str] = None
    sujet: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    priorite: PrioriteReclamation = PrioriteReclamation.NORMALE

    @field_validator("nom", "sujet", "message", "telephone", mode="before")
    @classmethod
    def _nettoyer(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("telephone")
    @classmethod
    def _telephone_vide(cls, v):
        return v or None


class ReclamationUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    statut: Optional[StatutReclamation] = None
    priorite: Optional[PrioriteReclamation] = None
    assignee_id: Optional[str] = None
    notes_internes: Optional[str] = None
    date_resolution: Optional[DateUTC] = None


class ActionResumeResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    titre: str
    statut: StatutActionCorrective
    avancement: int


class ReclamationResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    nom: str
    email: str
    telephone: Optional[str] = None
    sujet: str
    message: str
    priorite: PrioriteReclamation
    statut: StatutReclamation
    assignee_id: Optional[str] = None
    notes_internes: Optional[str] = None
    date_resolution: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ReclamationDetailResponse(ReclamationResponse):
    actions_correctives: List[ActionResumeResponse] = []


# === Actions correctives ===

class ActionCorrectiveCreate(BaseModel):
    model_config = ENTREE_CAMEL

    titre: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    statut: StatutActionCorrective = StatutActionCorrective.PLANIFIEE
    origine_type: Optional[OrigineActionCorrective] = None
    origine_ref: Optional[str] = None
    origine_date: Optional[DateUTC] = None
    origine_resume: Optional[str] = None
    priorite: PrioriteActionCorrective = PrioriteActionCorrective.MOYENNE
    avancement: int = Field(0, ge=0, le=100)
    responsable_nom: Optional[str] = None
    responsable_email: Optional[EmailStr] = None
    date_echeance: Optional[DateUTC] = None
    indicateur_efficacite: Optional[str] = None
    reclamation_id: Optional[str] = None


class ActionCorrectiveUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    titre: Optional[str] = Field(None, min_length=3)
    description: Optional[str] = Field(None, min_length=10)
    statut: Optional[StatutActionCorrective] = None
    origine_type: Optional[OrigineActionCorrective] = None
    origine_ref: Optional[str] = None
    origine_date: Optional[DateUTC] = None
    origine_resume: Optional[str] = None
    priorite: Optional[PrioriteActionCorrective] = None
    avancement: Optional[int] = Field(None, ge=0, le=100)
    responsable_nom: Optional[str] = None
    responsable_email: Optional[EmailStr] = None
    date_echeance: Optional[DateUTC] = None
    indicateur_efficacite: Optional[str] = None


class HistoriqueActionResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    action: str
    commentaire: Optional[str] = None
    utilisateur: str
    date_action: datetime


class ReclamationResumeResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    sujet: str
    statut: StatutReclamation


class ActionCorrectiveResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    titre: str
    description: str
    statut: StatutActionCorrective
    origine_type: OrigineActionCorrective
    origine_ref: Optional[str] = None
    origine_date: Optional[datetime] = None
    origine_resume: Optional[str] = None
    priorite: PrioriteActionCorrective
    avancement: int
    responsable_nom: Optional[str] = None
    responsable_email: Optional[str] = None
    date_echeance: Optional[datetime] = None
    indicateur_efficacite: Optional[str] = None
    reclamation_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ActionCorrectiveDetailResponse(ActionCorrectiveResponse):
    reclamation: Optional[ReclamationResumeResponse] = None
    historique: List[HistoriqueActionResponse] = []
