"""
Router pour les catégories de programmes
"""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..core.database import get_session
from ..core.security import Identite, get_current_user
from ..schemas.base import vers_api
from ..schemas.programme_schemas import CategorieCreate, CategorieResponse, CategorieUpdate
from ..services.categorie_service import CategorieService

router = APIRouter()


@router.get("")
def lister_categories(session: Session = Depends(get_session)):
    categories = CategorieService.lister(session)
    return {"success": True, "data": [vers_api(CategorieResponse, c) for c in categories]}


@router.post("", status_code=status.HTTP_201_CREATED)
def creer_categorie(
    data: CategorieCreate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    categorie = CategorieService.creer(session, data)
    return {"success": True, "data": vers_api(CategorieResponse, categorie)}


@router.put("/{categorie_id}")
def mettre_a_jour_categorie(
    categorie_id: str,
    data: CategorieUpdate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    categorie = CategorieService.mettre_a_jour(session, categorie_id, data)
    return {"success": True, "data": vers_api(CategorieResponse, categorie)}


@router.delete("/{categorie_id}")
def supprimer_categorie(
    categorie_id: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    CategorieService.supprimer(session, categorie_id)
    return {"success": True, "message": "Catégorie supprimée avec succès"}
