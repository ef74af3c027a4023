"""
Router des réclamations (suivi qualité)

Le dépôt d'une réclamation est public (formulaire du site) ;
la consultation et le traitement exigent une authentification.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ..core.database import get_session
from ..core.security import Identite, get_current_user
from ..models.enums import PrioriteReclamation, StatutReclamation
from ..schemas.base import vers_api
from ..schemas.qualite_schemas import (
    ReclamationCreate, ReclamationDetailResponse, ReclamationResponse, ReclamationUpdate,
)
from ..services.qualite_service import ReclamationService

router = APIRouter()


def get_reclamation_service(session: Session = Depends(get_session)) -> ReclamationService:
    return ReclamationService(session)


@router.get("")
def lister_reclamations(
    statut: Optional[StatutReclamation] = Query(None),
    priorite: Optional[PrioriteReclamation] = Query(None),
    service: ReclamationService = Depends(get_reclamation_service),
    current_user: Identite = Depends(get_current_user),
):
    reclamations = service.lister(statut, priorite)
    return {
        "success": True,
        "data": [vers_api(ReclamationResponse, r) for r in reclamations],
        "total": len(reclamations),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def creer_reclamation(data: ReclamationCreate, service: ReclamationService = Depends(get_reclamation_service)):
    reclamation = service.creer(data)
    return {
        "success": True,
        "data": vers_api(ReclamationResponse, reclamation),
        "message": "Réclamation enregistrée avec succès",
    }


@router.get("/{reclamation_id}")
def obtenir_reclamation(
    reclamation_id: str,
    service: ReclamationService = Depends(get_reclamation_service),
    current_user: Identite = Depends(get_current_user),
):
    """Réclamation avec ses actions correctives"""
    reclamation = service.obtenir(reclamation_id)
    return {"success": True, "data": vers_api(ReclamationDetailResponse, reclamation)}


@router.put("/{reclamation_id}")
def mettre_a_jour_reclamation(
    reclamation_id: str,
    data: ReclamationUpdate,
    service: ReclamationService = Depends(get_reclamation_service),
    current_user: Identite = Depends(get_current_user),
):
    reclamation = service.mettre_a_jour(reclamation_id, data)
    return {
        "success": True,
        "data": vers_api(ReclamationResponse, reclamation),
        "message": "Réclamation mise à jour avec succès",
    }


@router.delete("/{reclamation_id}")
def supprimer_reclamation(
    reclamation_id: str,
    service: ReclamationService = Depends(get_reclamation_service),
    current_user: Identite = Depends(get_current_user),
):
    service.supprimer(reclamation_id)
    return {"success": True, "message": "Réclamation supprimée avec succès"}
