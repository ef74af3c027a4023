"""
Schémas Pydantic pour les programmes de formation et leurs catégories
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.enums import TypeProgramme
from ..services.normalisation import coercer_objectifs
from .base import ENTREE_CAMEL, SORTIE_CAMEL


# ----------------------------
# Catégories
# ----------------------------
class CategorieCreate(BaseModel):
    model_config = ENTREE_CAMEL

    code: str = Field(..., min_length=1, max_length=50)
    titre: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    ordre: int = 0


class CategorieUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    code: Optional[str] = Field(None, min_length=1, max_length=50)
    titre: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    ordre: Optional[int] = None


class CategorieResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    code: str
    titre: str
    description: Optional[str] = None
    ordre: int


# ----------------------------
# Programmes
# ----------------------------
class ProgrammeCreate(BaseModel):
    model_config = ENTREE_CAMEL

    code: str = Field(..., min_length=1)
    type: TypeProgramme
    titre: str = Field(..., min_length=1)
    description: str = ""
    duree: str = Field(..., min_length=1)
    prix: str = Field(..., min_length=1)

    niveau: str = "Non spécifié"
    participants: str = "Non spécifié"
    objectifs: List[str] = []
    prerequis: str = "Aucun prérequis spécifique"
    public_concerne: str = "Tout public"
    contenu_detaille_jours: str = ""

    modalites: str = "En présentiel individuel"
    modalites_acces: str = "Inscription en ligne ou par téléphone"
    modalites_techniques: str = "Matériel fourni sur place"
    modalites_reglement: str = "Paiement par virement bancaire"

    formateur: str = "Formateur expert"
    ressources_disposition: str = "Support de cours et exercices pratiques"
    modalites_evaluation: str = "Évaluation continue et QCM final"
    sanction_formation: str = "Attestation de fin de formation"
    niveau_certification: str = ""

    delai_acceptation: str = "15 jours avant le début de formation"
    accessibilite_handicap: str = "Locaux accessibles PMR - Nous consulter pour adaptations spécifiques"
    cessation_abandon: str = "Remboursement au prorata selon conditions générales"

    categorie_id: Optional[str] = None
    pictogramme: str = "📚"
    est_actif: bool = True
    est_visible: bool = True

    @field_validator("objectifs", mode="before")
    @classmethod
    def _objectifs_en_liste(cls, v):
        return coercer_objectifs(v) or []


class ProgrammeUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    code: Optional[str] = Field(None, min_length=1)
    type: Optional[TypeProgramme] = None
    titre: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    duree: Optional[str] = None
    prix: Optional[str] = None
    niveau: Optional[str] = None
    participants: Optional[str] = None
    objectifs: Optional[List[str]] = None
    prerequis: Optional[str] = None
    public_concerne: Optional[str] = None
    contenu_detaille_jours: Optional[str] = None
    modalites: Optional[str] = None
    modalites_acces: Optional[str] = None
    modalites_techniques: Optional[str] = None
    modalites_reglement: Optional[str] = None
    formateur: Optional[str] = None
    ressources_disposition: Optional[str] = None
    modalites_evaluation: Optional[str] = None
    sanction_formation: Optional[str] = None
    niveau_certification: Optional[str] = None
    delai_acceptation: Optional[str] = None
    accessibilite_handicap: Optional[str] = None
    cessation_abandon: Optional[str] = None
    categorie_id: Optional[str] = None
    pictogramme: Optional[str] = None
    est_actif: Optional[bool] = None
    est_visible: Optional[bool] = None

    @field_validator("objectifs", mode="before")
    @classmethod
    def _objectifs_en_liste(cls, v):
        return coercer_objectifs(v)


class ProgrammeResponse(BaseModel):
    model_config = SORTIE_CAMEL

    id: str
    code: str
    type: TypeProgramme
    titre: str
    description: str
    duree: str
    prix: str
    niveau: str
    participants: str
    objectifs: List[str]
    prerequis: str
    public_concerne: str
    contenu_detaille_jours: str
    modalites: str
    modalites_acces: str
    modalites_techniques: str
    modalites_reglement: str
    formateur: str
    ressources_disposition: str
    modalites_evaluation: str
    sanction_formation: str
    niveau_certification: str
    delai_acceptation: str
    accessibilite_handicap: str
    cessation_abandon: str
    categorie_id: Optional[str] = None
    categorie: Optional[CategorieResponse] = None
    pictogramme: str
    est_actif: bool
    est_visible: bool
    version: int
    rendezvous_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DonneesDuplication(BaseModel):
    model_config = ENTREE_CAMEL

    code: Optional[str] = Field(None, min_length=1)
    titre: Optional[str] = Field(None, min_length=1)
    type: Optional[TypeProgramme] = None


class DuplicationRequest(BaseModel):
    model_config = ENTREE_CAMEL

    source_id: str
    new_data: DonneesDuplication = DonneesDuplication()


class ActifUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    est_actif: bool


class VisibleUpdate(BaseModel):
    model_config = ENTREE_CAMEL

    est_visible: bool
