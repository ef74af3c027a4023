"""
Service de gestion des catégories de programmes
"""
import logging
from typing import List

from sqlalchemy import func
from sqlmodel import Session, select

from ..core.exceptions import DonneesInvalides, DoublonError, RessourceIntrouvable
from ..models.base import CategorieProgramme, ProgrammeFormation
from ..schemas.programme_schemas import CategorieCreate, CategorieUpdate

logger = logging.getLogger(__name__)


class CategorieService:

    @staticmethod
    def lister(session: Session) -> List[CategorieProgramme]:
        return list(session.exec(
            select(CategorieProgramme).order_by(CategorieProgramme.ordre, CategorieProgramme.titre)
        ).all())

    @staticmethod
    def obtenir(session: Session, categorie_id: str) -> CategorieProgramme:
        categorie = session.get(CategorieProgramme, categorie_id)
        if not categorie:
            raise RessourceIntrouvable("Catégorie non trouvée")
        return categorie

    @staticmethod
    def _verifier_code_libre(session: Session, code: str) -> None:
        if session.exec(select(CategorieProgramme).where(CategorieProgramme.code == code)).first():
            raise DoublonError("Une catégorie avec ce code existe déjà")

    @staticmethod
    def creer(session: Session, data: CategorieCreate) -> CategorieProgramme:
        CategorieService._verifier_code_libre(session, data.code)
        categorie = CategorieProgramme(**data.model_dump())
        session.add(categorie)
        session.commit()
        session.refresh(categorie)
        logger.info("🏷️ Catégorie créée: %s", categorie.code)
        return categorie

    @staticmethod
    def mettre_a_jour(session: Session, categorie_id: str, data: CategorieUpdate) -> CategorieProgramme:
        categorie = CategorieService.obtenir(session, categorie_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("code") and update_data["code"] != categorie.code:
            CategorieService._verifier_code_libre(session, update_data["code"])
        for field, value in update_data.items():
            setattr(categorie, field, value)
        session.add(categorie)
        session.commit()
        session.refresh(categorie)
        return categorie

    @staticmethod
    def supprimer(session: Session, categorie_id: str) -> None:
        categorie = CategorieService.obtenir(session, categorie_id)
        nb_programmes = session.exec(
            select(func.count()).select_from(ProgrammeFormation)
            .where(ProgrammeFormation.categorie_id == categorie_id)
        ).one()
        if nb_programmes:
            raise DonneesInvalides(
                "Impossible de supprimer cette catégorie car elle est utilisée par un ou plusieurs programmes",
                details=[{"count": nb_programmes}],
            )
        session.delete(categorie)
        session.commit()
        logger.info("🗑️ Catégorie %s supprimée", categorie.code)
