"""
Router des actions correctives
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ..core.database import get_session
from ..core.security import Identite, get_current_user
from ..models.enums import PrioriteActionCorrective, StatutActionCorrective
from ..schemas.base import vers_api
from ..schemas.qualite_schemas import (
    ActionCorrectiveCreate, ActionCorrectiveDetailResponse, ActionCorrectiveResponse,
    ActionCorrectiveUpdate,
)
from ..services.qualite_service import ActionCorrectiveService

router = APIRouter()


def get_action_service(
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
) -> ActionCorrectiveService:
    return ActionCorrectiveService(session, utilisateur=current_user.email)


@router.get("")
def lister_actions(
    statut: Optional[StatutActionCorrective] = Query(None),
    priorite: Optional[PrioriteActionCorrective] = Query(None),
    reclamation_id: Optional[str] = Query(None, alias="reclamationId"),
    service: ActionCorrectiveService = Depends(get_action_service),
):
    actions = service.lister(statut, priorite, reclamation_id)
    return {
        "success": True,
        "data": [vers_api(ActionCorrectiveResponse, a) for a in actions],
        "total": len(actions),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def creer_action(data: ActionCorrectiveCreate, service: ActionCorrectiveService = Depends(get_action_service)):
    action = service.creer(data)
    return {
        "success": True,
        "data": vers_api(ActionCorrectiveResponse, action),
        "message": "Action corrective créée avec succès",
    }


@router.get("/{action_id}")
def obtenir_action(action_id: str, service: ActionCorrectiveService = Depends(get_action_service)):
    """Action corrective avec sa réclamation d'origine et son historique"""
    action = service.obtenir(action_id)
    return {"success": True, "data": vers_api(ActionCorrectiveDetailResponse, action)}


@router.put("/{action_id}")
def mettre_a_jour_action(
    action_id: str, data: ActionCorrectiveUpdate, service: ActionCorrectiveService = Depends(get_action_service)
):
    action = service.mettre_a_jour(action_id, data)
    return {
        "success": True,
        "data": vers_api(ActionCorrectiveResponse, action),
        "message": "Action corrective mise à jour avec succès",
    }


@router.delete("/{action_id}")
def supprimer_action(action_id: str, service: ActionCorrectiveService = Depends(get_action_service)):
    service.supprimer(action_id)
    return {"success": True, "message": "Action corrective supprimée avec succès"}
