"""
Router pour la gestion des rendez-vous (positionnement, impact) et de leur cycle de vie
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from fastapi.responses import HTMLResponse
from sqlmodel import Session

from ..core.config import settings
from ..core.database import get_session
from ..core.exceptions import DonneesInvalides
from ..core.security import Identite, get_current_user
from ..models.base import Rendezvous
from ..schemas.rendezvous_schemas import (
    AnnulationRequest, CompteRenduRequest, EvaluationImpactRequest,
    PlanificationImpactRequest, RendezvousCreate, RendezvousUpdate,
    ReprogrammationRequest, StatutUpdate, ValidationRequest, rendezvous_vers_api,
)
from ..services.rendezvous_service import RendezvousService
from ..templates import templates

logger = logging.getLogger(__name__)

router = APIRouter()


def version_attendue(if_match: Optional[str] = Header(None, alias="If-Match")) -> Optional[int]:
    """Version attendue transmise dans If-Match ("3", 3 ou W/"3")"""
    if if_match is None or if_match.strip() in ("", "*"):
        return None
    valeur = if_match.strip()
    if valeur.startswith("W/"):
        valeur = valeur[2:]
    try:
        return int(valeur.strip('"'))
    except ValueError:
        raise DonneesInvalides("En-tête If-Match invalide")


def _succes(response: Response, rdv: Rendezvous, message: Optional[str] = None) -> dict:
    response.headers["ETag"] = f'"{rdv.version}"'
    contenu = {"success": True, "data": rendezvous_vers_api(rdv)}
    if message:
        contenu["message"] = message
    return contenu


@router.get("")
def lister_rendezvous(
    statut: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    """Liste des rendez-vous, filtrable par statut et type"""
    rdvs = RendezvousService(session).lister(statut=statut, type_rdv=type)
    return {"success": True, "data": [rendezvous_vers_api(r) for r in rdvs], "total": len(rdvs)}


@router.post("", status_code=status.HTTP_201_CREATED)
def creer_rendezvous(
    data: RendezvousCreate,
    response: Response,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).creer(data)
    return _succes(response, rdv, "Demande de contact enregistrée avec succès")


@router.get("/statistiques")
def statistiques_rendezvous(
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    return {"success": True, "data": RendezvousService(session).statistiques()}


@router.get("/{rdv_id}")
def obtenir_rendezvous(
    rdv_id: str,
    response: Response,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    return _succes(response, RendezvousService(session).obtenir(rdv_id))


@router.put("/{rdv_id}")
def mettre_a_jour_rendezvous(
    rdv_id: str,
    data: RendezvousUpdate,
    response: Response,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).mettre_a_jour(rdv_id, data, version)
    return _succes(response, rdv, "Rendez-vous mis à jour avec succès")


@router.delete("/{rdv_id}")
def supprimer_rendezvous(
    rdv_id: str,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    RendezvousService(session).supprimer(rdv_id, version)
    return {"success": True, "message": "Rendez-vous supprimé avec succès"}


@router.put("/{rdv_id}/statut")
def changer_statut_rendezvous(
    rdv_id: str,
    data: StatutUpdate,
    response: Response,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).changer_statut(rdv_id, data.statut, version)
    return _succes(response, rdv, "Statut mis à jour avec succès")


@router.put("/{rdv_id}/valider")
def valider_rendezvous(
    rdv_id: str,
    response: Response,
    data: Optional[ValidationRequest] = None,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    data = data or ValidationRequest()
    rdv = RendezvousService(session).valider(rdv_id, data.format_rdv, data.date_rdv, version)
    return _succes(response, rdv, "Rendez-vous validé avec succès")


@router.post("/{rdv_id}/annuler")
def annuler_rendezvous(
    rdv_id: str,
    response: Response,
    data: Optional[AnnulationRequest] = None,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    data = data or AnnulationRequest()
    rdv = RendezvousService(session).annuler(rdv_id, data.raison, version)
    return _succes(response, rdv, "Rendez-vous annulé")


@router.post("/{rdv_id}/reprogrammer")
def reprogrammer_rendezvous(
    rdv_id: str,
    data: ReprogrammationRequest,
    response: Response,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).reprogrammer(rdv_id, data.date_rdv, data.format_rdv, version)
    return _succes(response, rdv, "Rendez-vous reprogrammé avec succès")


@router.put("/{rdv_id}/compte-rendu")
def editer_compte_rendu(
    rdv_id: str,
    data: CompteRenduRequest,
    response: Response,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).editer_compte_rendu(rdv_id, data.synthese, data.notes, version)
    return _succes(response, rdv, "Compte rendu mis à jour")


@router.get("/{rdv_id}/compte-rendu/document", response_class=HTMLResponse)
def document_compte_rendu(
    rdv_id: str,
    request: Request,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    """Compte rendu imprimable (HTML)"""
    rdv = RendezvousService(session).obtenir(rdv_id)
    return templates.TemplateResponse(request, "rendezvous/compte_rendu.html", {
        "rdv": rdv,
        "app_name": settings.APP_NAME,
        "genere_le": rdv.updated_at or rdv.created_at,
    })


@router.post("/{rdv_id}/generer-programme")
def generer_programme(
    rdv_id: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    programme, dossier = RendezvousService(session).generer_programme_et_dossier(rdv_id)
    return {
        "success": True,
        "data": {"programmeId": programme.id, "dossierId": dossier.id},
        "message": "Programme et dossier générés avec succès",
    }


# ----------------------------
# Impact
# ----------------------------
@router.post("/{rdv_id}/impact/planifier", status_code=status.HTTP_201_CREATED)
def planifier_impact(
    rdv_id: str,
    response: Response,
    data: Optional[PlanificationImpactRequest] = None,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    data = data or PlanificationImpactRequest()
    impact = RendezvousService(session).planifier_impact(rdv_id, data.date_impact)
    response.headers["ETag"] = f'"{impact.version}"'
    return {
        "success": True,
        "data": {"rendezvous": rendezvous_vers_api(impact)},
        "message": "Rendez-vous d'impact planifié",
    }


@router.put("/{rdv_id}/impact/evaluation")
def completer_evaluation_impact(
    rdv_id: str,
    data: EvaluationImpactRequest,
    response: Response,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).completer_evaluation_impact(rdv_id, data, version)
    return _succes(response, rdv, "Évaluation d'impact complétée")


@router.post("/{rdv_id}/impact/evaluation")
def enregistrer_evaluation_impact(
    rdv_id: str,
    data: EvaluationImpactRequest,
    response: Response,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).save_impact_evaluation(rdv_id, data, version)
    return _succes(response, rdv, "Évaluation d'impact enregistrée")


@router.put("/{rdv_id}/impact/terminer")
def terminer_impact(
    rdv_id: str,
    response: Response,
    version: Optional[int] = Depends(version_attendue),
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    rdv = RendezvousService(session).terminer_impact(rdv_id, version)
    return _succes(response, rdv, "Rendez-vous d'impact terminé")


@router.get("/{rdv_id}/impact/rapport")
def rapport_impact(
    rdv_id: str,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    return RendezvousService(session).generer_rapport_impact(rdv_id)


@router.get("/{rdv_id}/impact/rapport/document", response_class=HTMLResponse)
def document_rapport_impact(
    rdv_id: str,
    request: Request,
    session: Session = Depends(get_session),
    current_user: Identite = Depends(get_current_user),
):
    service = RendezvousService(session)
    rdv = service.obtenir(rdv_id)
    parent = session.get(Rendezvous, rdv.rendezvous_parent_id) if rdv.rendezvous_parent_id else None
    return templates.TemplateResponse(request, "rendezvous/rapport_impact.html", {
        "rdv": rdv,
        "parent": parent,
        "echelle_max": settings.SATISFACTION_ECHELLE_MAX,
        "app_name": settings.APP_NAME,
        "genere_le": rdv.updated_at or rdv.created_at,
    })
