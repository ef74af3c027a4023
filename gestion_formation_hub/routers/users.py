"""
Router pour l'administration des utilisateurs (rôle administrateur requis)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ..core.database import get_session
from ..core.security import Identite, require_admin
from ..models.enums import UserRole
from ..schemas.base import vers_api
from ..schemas.user_schemas import UserActifUpdate, UserCreate, UserResponse, UserUpdate
from ..services.user_service import UserService

router = APIRouter()


@router.get("")
def lister_utilisateurs(
    role: Optional[UserRole] = Query(None),
    actif: Optional[bool] = Query(None),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(require_admin),
):
    users = UserService.lister(session, role, actif)
    return {"success": True, "data": [vers_api(UserResponse, u) for u in users], "total": len(users)}


@router.post("", status_code=status.HTTP_201_CREATED)
def creer_utilisateur(
    user_data: UserCreate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(require_admin),
):
    user = UserService.create_user(session, user_data)
    return {"success": True, "data": vers_api(UserResponse, user)}


@router.get("/{user_id}")
def obtenir_utilisateur(
    user_id: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(require_admin),
):
    return {"success": True, "data": vers_api(UserResponse, UserService.obtenir(session, user_id))}


@router.put("/{user_id}")
def mettre_a_jour_utilisateur(
    user_id: str,
    user_data: UserUpdate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(require_admin),
):
    user = UserService.update_user(session, user_id, user_data)
    return {
        "success": True,
        "data": vers_api(UserResponse, user),
        "message": f"Utilisateur {user_id} modifié avec succès",
    }


@router.patch("/{user_id}/actif")
def changer_actif_utilisateur(
    user_id: str,
    data: UserActifUpdate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(require_admin),
):
    user = UserService.changer_actif(session, user_id, data.is_active)
    return {"success": True, "data": vers_api(UserResponse, user)}


@router.delete("/{user_id}")
def desactiver_utilisateur(
    user_id: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(require_admin),
):
    """La suppression du compte se fait chez le fournisseur d'identité ; ici on désactive"""
    user = UserService.changer_actif(session, user_id, False)
    return {
        "success": True,
        "data": vers_api(UserResponse, user),
        "message": "Utilisateur désactivé",
    }
