"""
Services du suivi qualité : réclamations et actions correctives

Les modifications d'une action corrective sont tracées dans
HistoriqueActionCorrective.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, select

from ..core.exceptions import DonneesInvalides, RessourceIntrouvable
from ..models.base import ActionCorrective, HistoriqueActionCorrective, Reclamation, User
from ..models.enums import (
    OrigineActionCorrective, PrioriteActionCorrective, PrioriteReclamation,
    StatutActionCorrective, StatutReclamation,
)
from ..schemas.qualite_schemas import (
    ActionCorrectiveCreate, ActionCorrectiveUpdate, ReclamationCreate, ReclamationUpdate,
)
from .veille_service import UTILISATEUR_SYSTEME

logger = logging.getLogger(__name__)

STATUTS_CLOS = (StatutReclamation.RESOLUE, StatutReclamation.FERMEE)


def _maintenant() -> datetime:
    return datetime.now(timezone.utc)


class ReclamationService:

    def __init__(self, session: Session):
        self.session = session

    def lister(
        self,
        statut: Optional[StatutReclamation] = None,
        priorite: Optional[PrioriteReclamation] = None,
    ) -> List[Reclamation]:
        query = select(Reclamation)
        if statut:
            query = query.where(Reclamation.statut == statut)
        if priorite:
            query = query.where(Reclamation.priorite == priorite)
        return list(self.session.exec(query.order_by(Reclamation.created_at.desc())).all())

    def obtenir(self, reclamation_id: str) -> Reclamation:
        reclamation = self.session.get(Reclamation, reclamation_id)
        if not reclamation:
            raise RessourceIntrouvable("Réclamation non trouvée")
        return reclamation

    def creer(self, data: ReclamationCreate) -> Reclamation:
        reclamation = Reclamation(**data.model_dump())
        self.session.add(reclamation)
        self.session.commit()
        self.session.refresh(reclamation)
        logger.info("📨 Réclamation reçue: %s (%s)", reclamation.sujet, reclamation.priorite.value)
        return reclamation

    def mettre_a_jour(self, reclamation_id: str, data: ReclamationUpdate) -> Reclamation:
        reclamation = self.obtenir(reclamation_id)
        update_data = data.model_dump(exclude_unset=True)

        assignee_id = update_data.get("assignee_id")
        if assignee_id and not self.session.get(User, assignee_id):
            raise DonneesInvalides("Utilisateur assigné introuvable")

        for field, value in update_data.items():
            setattr(reclamation, field, value)

        # Date de résolution posée à la clôture si elle n'est pas fournie
        if reclamation.statut in STATUTS_CLOS and reclamation.date_resolution is None:
            reclamation.date_resolution = _maintenant()
        reclamation.updated_at = _maintenant()

        self.session.add(reclamation)
        self.session.commit()
        self.session.refresh(reclamation)
        return reclamation

    def supprimer(self, reclamation_id: str) -> None:
        """Les actions correctives liées sont conservées et détachées"""
        reclamation = self.obtenir(reclamation_id)
        for action in reclamation.actions_correctives:
            action.reclamation_id = None
            self.session.add(action)
        self.session.flush()
        self.session.delete(reclamation)
        self.session.commit()
        logger.info("🗑️ Réclamation %s supprimée", reclamation_id)


class ActionCorrectiveService:

    def __init__(self, session: Session, utilisateur: Optional[str] = None):
        self.session = session
        self.utilisateur = utilisateur or UTILISATEUR_SYSTEME

    def _historiser(self, action_id: str, action: str, commentaire: Optional[str] = None) -> None:
        self.session.add(HistoriqueActionCorrective(
            action_corrective_id=action_id, action=action, commentaire=commentaire,
            utilisateur=self.utilisateur,
        ))

    def lister(
        self,
        statut: Optional[StatutActionCorrective] = None,
        priorite: Optional[PrioriteActionCorrective] = None,
        reclamation_id: Optional[str] = None,
    ) -> List[ActionCorrective]:
        query = select(ActionCorrective)
        if statut:
            query = query.where(ActionCorrective.statut == statut)
        if priorite:
            query = query.where(ActionCorrective.priorite == priorite)
        if reclamation_id:
            query = query.where(ActionCorrective.reclamation_id == reclamation_id)
        return list(self.session.exec(query.order_by(ActionCorrective.created_at.desc())).all())

    def obtenir(self, action_id: str) -> ActionCorrective:
        action = self.session.get(ActionCorrective, action_id)
        if not action:
            raise RessourceIntrouvable("Action corrective non trouvée")
        return action

    def creer(self, data: ActionCorrectiveCreate) -> ActionCorrective:
        donnees = data.model_dump()

        if data.reclamation_id:
            if not self.session.get(Reclamation, data.reclamation_id):
                raise DonneesInvalides("Réclamation liée introuvable")
            donnees["origine_type"] = donnees["origine_type"] or OrigineActionCorrective.RECLAMATION
        if not donnees["origine_type"]:
            raise DonneesInvalides("Le type d'origine est requis")
        if data.statut == StatutActionCorrective.TERMINEE:
            donnees["avancement"] = 100

        action = ActionCorrective(**donnees)
        self.session.add(action)
        self.session.flush()
        self._historiser(action.id, "Création", "Action corrective créée")
        self.session.commit()
        self.session.refresh(action)
        logger.info("🛠️ Action corrective créée: %s (%s)", action.titre, action.origine_type.value)
        return action

    def mettre_a_jour(self, action_id: str, data: ActionCorrectiveUpdate) -> ActionCorrective:
        action = self.obtenir(action_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("statut") == StatutActionCorrective.TERMINEE:
            update_data.setdefault("avancement", 100)

        modifications = []
        for field, value in update_data.items():
            if getattr(action, field) != value:
                modifications.append(field)
            setattr(action, field, value)
        action.updated_at = _maintenant()

        if "statut" in modifications:
            self._historiser(action.id, "Changement de statut", f"Nouveau statut: {action.statut.value}")
        if "avancement" in modifications:
            self._historiser(action.id, "Mise à jour de l'avancement", f"Avancement: {action.avancement}%")
        autres = [m for m in modifications if m not in ("statut", "avancement")]
        if autres:
            self._historiser(action.id, "Modification", f"Champs modifiés: {', '.join(autres)}")

        self.session.add(action)
        self.session.commit()
        self.session.refresh(action)
        return action

    def supprimer(self, action_id: str) -> None:
        action = self.obtenir(action_id)
        self.session.delete(action)
        self.session.commit()
        logger.info("🗑️ Action corrective %s supprimée", action_id)
