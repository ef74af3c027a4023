"""
Router pour la gestion des programmes de formation (catalogue et personnalisés)
"""
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ..core.database import get_session
from ..core.exceptions import RessourceIntrouvable
from ..core.security import Identite, get_current_user
from ..models.enums import TypeProgramme
from ..schemas.base import vers_api
from ..schemas.programme_schemas import (
    ActifUpdate, CategorieResponse, DuplicationRequest, ProgrammeCreate,
    ProgrammeResponse, ProgrammeUpdate, VisibleUpdate,
)
from ..services.programme_service import ProgrammeService

router = APIRouter()


@router.get("")
def lister_programmes(
    type: Optional[TypeProgramme] = Query(None),
    categorie_id: Optional[str] = Query(None, alias="categorieId"),
    est_actif: Optional[bool] = Query(None, alias="estActif"),
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False, alias="includeInactive"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    """Liste paginée des programmes"""
    programmes, total = ProgrammeService.lister(
        session, type, categorie_id, est_actif, search, include_inactive, page, limit
    )
    total_pages = math.ceil(total / limit)
    return {
        "success": True,
        "data": [vers_api(ProgrammeResponse, p) for p in programmes],
        "pagination": {
            "total": total,
            "totalPages": total_pages,
            "currentPage": page,
            "itemsPerPage": limit,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        },
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def creer_programme(
    programme_data: ProgrammeCreate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    programme = ProgrammeService.create_programme(session, programme_data)
    return {"success": True, "data": vers_api(ProgrammeResponse, programme)}


@router.get("/par-categorie")
def programmes_par_categorie(
    categorie_id: Optional[str] = Query(None, alias="categorieId"),
    search: Optional[str] = Query(None, max_length=100),
    session: Session = Depends(get_session),
):
    """Catalogue public groupé par catégorie"""
    groupes = ProgrammeService.par_categorie(session, categorie_id, search)
    return {
        "success": True,
        "data": [
            {
                "categorie": vers_api(CategorieResponse, g["categorie"]) if g["categorie"] else None,
                "programmes": [vers_api(ProgrammeResponse, p) for p in g["programmes"]],
            }
            for g in groupes
        ],
    }


@router.post("/duplicate", status_code=status.HTTP_201_CREATED)
def dupliquer_programme(
    demande: DuplicationRequest,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    copie = ProgrammeService.dupliquer(session, demande)
    return {"success": True, "data": vers_api(ProgrammeResponse, copie)}


@router.get("/by-code/{code}")
def programme_par_code(
    code: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    programme = ProgrammeService.get_programme_by_code(session, code)
    if not programme:
        raise RessourceIntrouvable("Programme non trouvé")
    return {"success": True, "data": vers_api(ProgrammeResponse, programme)}


@router.get("/{programme_id}")
def obtenir_programme(
    programme_id: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    programme = ProgrammeService.obtenir(session, programme_id)
    return {"success": True, "data": vers_api(ProgrammeResponse, programme)}


@router.put("/{programme_id}")
def mettre_a_jour_programme(
    programme_id: str,
    programme_data: ProgrammeUpdate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    programme = ProgrammeService.update_programme(session, programme_id, programme_data)
    return {"success": True, "data": vers_api(ProgrammeResponse, programme)}


@router.patch("/{programme_id}/actif")
def changer_actif_programme(
    programme_id: str,
    data: ActifUpdate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    programme = ProgrammeService.changer_actif(session, programme_id, data.est_actif)
    return {"success": True, "data": vers_api(ProgrammeResponse, programme)}


@router.patch("/{programme_id}/visible")
def changer_visibilite_programme(
    programme_id: str,
    data: VisibleUpdate,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    programme = ProgrammeService.changer_visible(session, programme_id, data.est_visible)
    return {"success": True, "data": vers_api(ProgrammeResponse, programme)}


@router.delete("/{programme_id}")
def supprimer_programme(
    programme_id: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    ProgrammeService.delete_programme(session, programme_id)
    return {"success": True, "message": "Programme supprimé avec succès"}
