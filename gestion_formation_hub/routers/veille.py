"""
Router pour la veille réglementaire, métier et innovation
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ..core.database import get_session
from ..core.security import Identite, get_current_user
from ..models.enums import StatutVeille, TypeVeille
from ..schemas.base import vers_api
from ..schemas.veille_schemas import (
    CommentaireCreate, CommentaireResponse, VeilleCreate, VeilleDetailResponse,
    VeilleResponse, VeilleUpdate,
)
from ..services.veille_service import VeilleService

router = APIRouter()


def get_veille_service(
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
) -> VeilleService:
    return VeilleService(session, utilisateur=current_user.email)


@router.get("")
def lister_veilles(
    type: Optional[TypeVeille] = Query(None),
    statut: Optional[StatutVeille] = Query(None),
    service: VeilleService = Depends(get_veille_service),
):
    veilles = service.lister(type, statut)
    return {"success": True, "data": [vers_api(VeilleResponse, v) for v in veilles], "total": len(veilles)}


@router.post("", status_code=status.HTTP_201_CREATED)
def creer_veille(data: VeilleCreate, service: VeilleService = Depends(get_veille_service)):
    veille = service.creer(data)
    return {"success": True, "data": vers_api(VeilleResponse, veille), "message": "Veille créée avec succès"}


@router.get("/{veille_id}")
def obtenir_veille(veille_id: str, service: VeilleService = Depends(get_veille_service)):
    """Veille avec ses commentaires et son historique"""
    veille = service.obtenir(veille_id)
    return {"success": True, "data": vers_api(VeilleDetailResponse, veille)}


@router.put("/{veille_id}")
def mettre_a_jour_veille(veille_id: str, data: VeilleUpdate, service: VeilleService = Depends(get_veille_service)):
    veille = service.mettre_a_jour(veille_id, data)
    return {"success": True, "data": vers_api(VeilleResponse, veille), "message": "Veille modifiée avec succès"}


@router.delete("/{veille_id}")
def supprimer_veille(veille_id: str, service: VeilleService = Depends(get_veille_service)):
    service.supprimer(veille_id)
    return {"success": True, "message": "Veille supprimée avec succès"}


@router.post("/{veille_id}/commentaire", status_code=status.HTTP_201_CREATED)
def ajouter_commentaire(
    veille_id: str, data: CommentaireCreate, service: VeilleService = Depends(get_veille_service)
):
    commentaire = service.ajouter_commentaire(veille_id, data.contenu)
    return {"success": True, "data": vers_api(CommentaireResponse, commentaire)}


@router.put("/{veille_id}/commentaires/{commentaire_id}")
def modifier_commentaire(
    veille_id: str,
    commentaire_id: str,
    data: CommentaireCreate,
    service: VeilleService = Depends(get_veille_service),
):
    commentaire = service.modifier_commentaire(veille_id, commentaire_id, data.contenu)
    return {"success": True, "data": vers_api(CommentaireResponse, commentaire)}


@router.delete("/{veille_id}/commentaires/{commentaire_id}")
def supprimer_commentaire(
    veille_id: str, commentaire_id: str, service: VeilleService = Depends(get_veille_service)
):
    service.supprimer_commentaire(veille_id, commentaire_id)
    return {"success": True, "message": "Commentaire supprimé avec succès"}
