"""
Service de gestion de la veille

Chaque modification d'une veille ou de ses commentaires est tracée
dans VeilleHistorique.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, select

from ..core.exceptions import RessourceIntrouvable
from ..models.base import Veille, VeilleCommentaire, VeilleHistorique
from ..models.enums import StatutVeille, TypeVeille
from ..schemas.veille_schemas import VeilleCreate, VeilleUpdate

logger = logging.getLogger(__name__)

UTILISATEUR_SYSTEME = "Système"


def _extrait(texte: str, longueur: int = 50) -> str:
    return texte if len(texte) <= longueur else f"{texte[:longueur]}..."


class VeilleService:

    def __init__(self, session: Session, utilisateur: Optional[str] = None):
        self.session = session
        self.utilisateur = utilisateur or UTILISATEUR_SYSTEME

    def _historiser(self, veille_id: str, action: str, details: Optional[str] = None) -> None:
        self.session.add(VeilleHistorique(
            veille_id=veille_id, action=action, details=details, utilisateur=self.utilisateur,
        ))

    def lister(self, type_veille: Optional[TypeVeille] = None, statut: Optional[StatutVeille] = None) -> List[Veille]:
        query = select(Veille)
        if type_veille:
            query = query.where(Veille.type == type_veille)
        if statut:
            query = query.where(Veille.statut == statut)
        return list(self.session.exec(query.order_by(Veille.date_creation.desc())).all())

    def obtenir(self, veille_id: str) -> Veille:
        veille = self.session.get(Veille, veille_id)
        if not veille:
            raise RessourceIntrouvable("Veille non trouvée")
        return veille

    def creer(self, data: VeilleCreate) -> Veille:
        veille = Veille(**data.model_dump())
        self.session.add(veille)
        self.session.flush()
        self._historiser(veille.id, "Création", f"Veille créée: {veille.titre}")
        self.session.commit()
        self.session.refresh(veille)
        logger.info("🔎 Veille créée: %s", veille.titre)
        return veille

    def mettre_a_jour(self, veille_id: str, data: VeilleUpdate) -> Veille:
        veille = self.obtenir(veille_id)
        update_data = data.model_dump(exclude_unset=True)

        modifications = []
        for field, value in update_data.items():
            if getattr(veille, field) != value:
                modifications.append(field)
            setattr(veille, field, value)
        veille.date_modification = datetime.now(timezone.utc)

        if "statut" in modifications:
            self._historiser(veille.id, "Changement de statut", f"Nouveau statut: {veille.statut.value}")
        if "avancement" in modifications:
            self._historiser(veille.id, "Mise à jour de l'avancement", f"Avancement: {veille.avancement}%")
        autres = [m for m in modifications if m not in ("statut", "avancement")]
        if autres:
            self._historiser(veille.id, "Modification", f"Champs modifiés: {', '.join(autres)}")

        self.session.add(veille)
        self.session.commit()
        self.session.refresh(veille)
        return veille

    def supprimer(self, veille_id: str) -> None:
        veille = self.obtenir(veille_id)
        self.session.delete(veille)
        self.session.commit()
        logger.info("🗑️ Veille %s supprimée", veille_id)

    def ajouter_commentaire(self, veille_id: str, contenu: str) -> VeilleCommentaire:
        veille = self.obtenir(veille_id)
        commentaire = VeilleCommentaire(veille_id=veille.id, contenu=contenu, utilisateur=self.utilisateur)
        self.session.add(commentaire)
        self._historiser(veille.id, "Ajout de commentaire", f'Commentaire ajouté: "{_extrait(contenu)}"')
        self.session.commit()
        self.session.refresh(commentaire)
        return commentaire

    def _obtenir_commentaire(self, veille_id: str, commentaire_id: str) -> VeilleCommentaire:
        self.obtenir(veille_id)
        commentaire = self.session.get(VeilleCommentaire, commentaire_id)
        if not commentaire or commentaire.veille_id != veille_id:
            raise RessourceIntrouvable("Commentaire non trouvé")
        return commentaire

    def modifier_commentaire(self, veille_id: str, commentaire_id: str, contenu: str) -> VeilleCommentaire:
        commentaire = self._obtenir_commentaire(veille_id, commentaire_id)
        commentaire.contenu = contenu
        self.session.add(commentaire)
        self._historiser(veille_id, "Commentaire modifié", f'Nouveau contenu: "{_extrait(contenu)}"')
        self.session.commit()
        self.session.refresh(commentaire)
        return commentaire

    def supprimer_commentaire(self, veille_id: str, commentaire_id: str) -> None:
        commentaire = self._obtenir_commentaire(veille_id, commentaire_id)
        self.session.delete(commentaire)
        self._historiser(veille_id, "Commentaire supprimé", f'Commentaire supprimé: "{_extrait(commentaire.contenu)}"')
        self.session.commit()
