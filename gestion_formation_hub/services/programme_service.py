"""
Service de gestion des programmes de formation
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlmodel import Session, select

from ..core.exceptions import DonneesInvalides, DoublonError, RessourceIntrouvable
from ..models.base import CategorieProgramme, DossierFormation, ProgrammeFormation
from ..models.enums import TypeProgramme
from ..schemas.programme_schemas import DuplicationRequest, ProgrammeCreate, ProgrammeUpdate

logger = logging.getLogger(__name__)

# Champs non recopiés lors d'une duplication
CHAMPS_NON_DUPLIQUES = {"id", "code", "titre", "type", "version", "rendezvous_id", "created_at", "updated_at"}


class ProgrammeService:
    """Service de gestion des programmes"""

    @staticmethod
    def lister(
        session: Session,
        type_programme: Optional[TypeProgramme] = None,
        categorie_id: Optional[str] = None,
        est_actif: Optional[bool] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[ProgrammeFormation], int]:
        """Liste paginée ; les programmes inactifs sont exclus sauf includeInactive"""
        conditions = []
        if type_programme:
            conditions.append(ProgrammeFormation.type == type_programme)
        if categorie_id:
            conditions.append(ProgrammeFormation.categorie_id == categorie_id)
        if est_actif is not None:
            conditions.append(ProgrammeFormation.est_actif == est_actif)
        elif not include_inactive:
            conditions.append(ProgrammeFormation.est_actif == True)  # noqa: E712
        if search:
            motif = f"%{search}%"
            conditions.append(or_(
                ProgrammeFormation.titre.ilike(motif),
                ProgrammeFormation.description.ilike(motif),
                ProgrammeFormation.code.ilike(motif),
            ))

        query = select(ProgrammeFormation).where(*conditions)
        total = session.exec(
            select(func.count()).select_from(ProgrammeFormation).where(*conditions)
        ).one()
        programmes = session.exec(
            query.order_by(ProgrammeFormation.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return list(programmes), total

    @staticmethod
    def obtenir(session: Session, programme_id: str) -> ProgrammeFormation:
        programme = session.get(ProgrammeFormation, programme_id)
        if not programme:
            raise RessourceIntrouvable("Programme non trouvé")
        return programme

    @staticmethod
    def get_programme_by_code(session: Session, code: str) -> Optional[ProgrammeFormation]:
        """Récupère un programme par code"""
        return session.exec(select(ProgrammeFormation).where(ProgrammeFormation.code == code)).first()

    @staticmethod
    def code_disponible(session: Session, base: str) -> str:
        """Retourne `base`, ou `base-2`, `base-3`... si le code est déjà pris"""
        code, rang = base, 1
        while ProgrammeService.get_programme_by_code(session, code):
            rang += 1
            code = f"{base}-{rang}"
        return code

    @staticmethod
    def _verifier_code_libre(session: Session, code: str, sauf_id: Optional[str] = None) -> None:
        existant = ProgrammeService.get_programme_by_code(session, code)
        if existant and existant.id != sauf_id:
            raise DoublonError("Un programme avec ce code existe déjà")

    @staticmethod
    def _verifier_categorie(session: Session, categorie_id: Optional[str]) -> None:
        if categorie_id and not session.get(CategorieProgramme, categorie_id):
            raise DonneesInvalides("Catégorie non trouvée")

    @staticmethod
    def create_programme(session: Session, programme_data: ProgrammeCreate) -> ProgrammeFormation:
        """Crée un nouveau programme"""
        ProgrammeService._verifier_code_libre(session, programme_data.code)
        ProgrammeService._verifier_categorie(session, programme_data.categorie_id)
        programme = ProgrammeFormation(**programme_data.model_dump())
        session.add(programme)
        session.commit()
        session.refresh(programme)
        logger.info("📚 Programme créé: %s (%s)", programme.code, programme.type.value)
        return programme

    @staticmethod
    def update_programme(session: Session, programme_id: str, programme_data: ProgrammeUpdate) -> ProgrammeFormation:
        """Met à jour un programme"""
        programme = ProgrammeService.obtenir(session, programme_id)
        update_data = programme_data.model_dump(exclude_unset=True)

        if update_data.get("code") and update_data["code"] != programme.code:
            ProgrammeService._verifier_code_libre(session, update_data["code"], sauf_id=programme.id)
        if "categorie_id" in update_data:
            ProgrammeService._verifier_categorie(session, update_data["categorie_id"])

        for field, value in update_data.items():
            setattr(programme, field, value)
        programme.updated_at = datetime.now(timezone.utc)

        session.add(programme)
        session.commit()
        session.refresh(programme)
        return programme

    @staticmethod
    def delete_programme(session: Session, programme_id: str) -> None:
        programme = ProgrammeService.obtenir(session, programme_id)
        nb_dossiers = session.exec(
            select(func.count()).select_from(DossierFormation)
            .where(DossierFormation.programme_id == programme_id)
        ).one()
        if nb_dossiers:
            raise DonneesInvalides(
                "Impossible de supprimer ce programme car il est utilisé dans un ou plusieurs dossiers",
                details=[{"count": nb_dossiers}],
            )
        session.delete(programme)
        session.commit()
        logger.info("🗑️ Programme %s supprimé", programme.code)

    @staticmethod
    def dupliquer(session: Session, demande: DuplicationRequest) -> ProgrammeFormation:
        """Copie un programme ; la copie devient personnalisée sauf type explicite"""
        source = session.get(ProgrammeFormation, demande.source_id)
        if not source:
            raise RessourceIntrouvable("Programme source introuvable")

        nouveau = demande.new_data
        code = nouveau.code or f"{source.code}-COPIE-{datetime.now(timezone.utc):%Y%m%d%H%M%S}"
        ProgrammeService._verifier_code_libre(session, code)

        donnees = {
            k: v for k, v in source.model_dump().items() if k not in CHAMPS_NON_DUPLIQUES
        }
        donnees["objectifs"] = list(source.objectifs or [])
        copie = ProgrammeFormation(
            **donnees,
            code=code,
            titre=nouveau.titre or source.titre,
            type=nouveau.type or TypeProgramme.PERSONNALISE,
        )
        session.add(copie)
        session.commit()
        session.refresh(copie)
        logger.info("📑 Programme %s dupliqué en %s", source.code, copie.code)
        return copie

    @staticmethod
    def changer_actif(session: Session, programme_id: str, est_actif: bool) -> ProgrammeFormation:
        return ProgrammeService.update_programme(session, programme_id, ProgrammeUpdate(est_actif=est_actif))

    @staticmethod
    def changer_visible(session: Session, programme_id: str, est_visible: bool) -> ProgrammeFormation:
        return ProgrammeService.update_programme(session, programme_id, ProgrammeUpdate(est_visible=est_visible))

    @staticmethod
    def par_categorie(
        session: Session, categorie_id: Optional[str] = None, search: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Programmes catalogue actifs et visibles, regroupés par catégorie"""
        query = select(ProgrammeFormation).where(
            ProgrammeFormation.type == TypeProgramme.CATALOGUE,
            ProgrammeFormation.est_actif == True,  # noqa: E712
            ProgrammeFormation.est_visible == True,  # noqa: E712
        )
        if categorie_id:
            query = query.where(ProgrammeFormation.categorie_id == categorie_id)
        if search:
            motif = f"%{search.strip()}%"
            query = query.where(or_(
                ProgrammeFormation.titre.ilike(motif),
                ProgrammeFormation.description.ilike(motif),
            ))
        programmes = session.exec(query.order_by(ProgrammeFormation.titre)).all()

        groupes: Dict[Optional[str], List[ProgrammeFormation]] = {}
        for programme in programmes:
            groupes.setdefault(programme.categorie_id, []).append(programme)

        categories = session.exec(
            select(CategorieProgramme).order_by(CategorieProgramme.ordre, CategorieProgramme.titre)
        ).all()
        resultat = [
            {"categorie": categorie, "programmes": groupes[categorie.id]}
            for categorie in categories if categorie.id in groupes
        ]
        if None in groupes:
            resultat.append({"categorie": None, "programmes": groupes[None]})
        return resultat
