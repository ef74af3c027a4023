# gestion_formation_hub/services/rendezvous_service.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, select

from ..core.exceptions import ConflitVersion, DonneesInvalides, RessourceIntrouvable
from ..models.base import DossierFormation, ProgrammeFormation, Rendezvous
from ..models.enums import CanalRDV, StatutDossier, StatutRDV, TypeProgramme, TypeRDV
from ..schemas.rendezvous_schemas import (
    EvaluationImpactRequest, RendezvousCreate, RendezvousUpdate,
)
from . import rendezvous_workflow as workflow
from .programme_service import ProgrammeService
from .validation import (
    convertir_satisfaction, validate_impact_evaluation, validate_rendezvous_form_data,
)

logger = logging.getLogger(__name__)

# Champs du bénéficiaire recopiés sur le rendez-vous d'impact
CHAMPS_COPIES_IMPACT = (
    "nom", "prenom", "email", "telephone",
    "entreprise", "siret", "adresse_entreprise",
    "formation_titre", "formation_selectionnee", "objectifs", "niveau", "format_rdv",
)


def _maintenant() -> datetime:
    return datetime.now(timezone.utc)


class RendezvousService:
    """Service pour la gestion des rendez-vous et de leur cycle de vie"""

    def __init__(self, session: Session):
        self.session = session

    # ----------------------------
    # Lecture
    # ----------------------------
    def lister(self, statut: Optional[str] = None, type_rdv: Optional[str] = None) -> List[Rendezvous]:
        query = select(Rendezvous)
        if statut:
            query = query.where(Rendezvous.statut == workflow.parse_statut(statut))
        if type_rdv:
            try:
                query = query.where(Rendezvous.type == TypeRDV(type_rdv))
            except ValueError:
                raise DonneesInvalides(f"Type de rendez-vous inconnu: {type_rdv}")
        query = query.order_by(Rendezvous.created_at.desc())
        return list(self.session.exec(query).all())

    def obtenir(self, rdv_id: str) -> Rendezvous:
        rdv = self.session.get(Rendezvous, rdv_id)
        if not rdv:
            raise RessourceIntrouvable("Rendez-vous non trouvé")
        return rdv

    def _obtenir_pour_ecriture(self, rdv_id: str, version_attendue: Optional[int]) -> Rendezvous:
        rdv = self.obtenir(rdv_id)
        if version_attendue is not None and version_attendue != rdv.version:
            logger.warning(
                "⚠️ Conflit de version sur %s: attendu %s, en base %s",
                rdv_id, version_attendue, rdv.version,
            )
            raise ConflitVersion(
                "Le rendez-vous a été modifié entre-temps, veuillez recharger",
                details=[{"version": rdv.version}],
            )
        return rdv

    def _a_des_impacts(self, rdv_id: str) -> bool:
        return self.session.exec(
            select(Rendezvous.id).where(Rendezvous.rendezvous_parent_id == rdv_id)
        ).first() is not None

    def _enregistrer(self, rdv: Rendezvous) -> Rendezvous:
        rdv.version += 1
        rdv.updated_at = _maintenant()
        self.session.add(rdv)
        self.session.commit()
        self.session.refresh(rdv)
        return rdv

    # ----------------------------
    # CRUD
    # ----------------------------
    def creer(self, data: RendezvousCreate) -> Rendezvous:
        donnees = data.model_dump(exclude_unset=True)
        type_rdv = donnees.pop("type", None) or TypeRDV.POSITIONNEMENT

        if type_rdv == TypeRDV.POSITIONNEMENT:
            resultat = validate_rendezvous_form_data({
                "nomBeneficiaire": data.nom,
                "prenomBeneficiaire": data.prenom,
                "emailBeneficiaire": data.email,
                "telephoneBeneficiaire": data.telephone,
            })
            if not resultat.is_valid:
                raise DonneesInvalides(resultat.errors[0], details=resultat.errors)

        if not donnees.get("commentaires"):
            formation = data.formation_titre or data.formation_selectionnee or "Non spécifiée"
            donnees["commentaires"] = f"Formation: {formation} - Objectifs: {data.objectifs or 'Non spécifiés'}"
        donnees.setdefault("date_contact", _maintenant())

        statut = StatutRDV.IMPACT if type_rdv == TypeRDV.IMPACT else StatutRDV.NOUVEAU
        rdv = Rendezvous(type=type_rdv, statut=statut, **donnees)
        self.session.add(rdv)
        self.session.commit()
        self.session.refresh(rdv)
        logger.info("📅 Rendez-vous créé: %s (%s)", rdv.id, rdv.type.value)
        return rdv

    def mettre_a_jour(self, rdv_id: str, data: RendezvousUpdate, version_attendue: Optional[int] = None) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        donnees = data.model_dump(exclude_unset=True)

        if "type" in donnees:
            type_rdv = donnees.pop("type")
            if type_rdv is not None and type_rdv != rdv.type:
                workflow.verifier_changement_type(rdv.type, type_rdv, self._a_des_impacts(rdv_id))
                rdv.type = type_rdv

        statut = donnees.pop("statut", None)
        if statut is not None:
            workflow.verifier_transition(rdv.statut, statut)
            rdv.statut = statut

        for field, value in donnees.items():
            setattr(rdv, field, value)
        return self._enregistrer(rdv)

    def supprimer(self, rdv_id: str, version_attendue: Optional[int] = None) -> None:
        """Suppression définitive ; les rattachements sont détachés, les dossiers supprimés"""
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)

        enfants = self.session.exec(
            select(Rendezvous).where(Rendezvous.rendezvous_parent_id == rdv_id)
        ).all()
        for enfant in enfants:
            enfant.rendezvous_parent_id = None
            self.session.add(enfant)

        dossiers = self.session.exec(
            select(DossierFormation).where(DossierFormation.rendezvous_id == rdv_id)
        ).all()
        for dossier in dossiers:
            self.session.delete(dossier)

        programmes = self.session.exec(
            select(ProgrammeFormation).where(ProgrammeFormation.rendezvous_id == rdv_id)
        ).all()
        for programme in programmes:
            programme.rendezvous_id = None
            self.session.add(programme)

        # Les détachements doivent être écrits avant la suppression (contraintes FK)
        self.session.flush()
        self.session.delete(rdv)
        self.session.commit()
        logger.info(
            "🗑️ Rendez-vous %s supprimé (%d impact(s) détaché(s), %d dossier(s) supprimé(s))",
            rdv_id, len(enfants), len(dossiers),
        )

    # ----------------------------
    # Cycle de vie
    # ----------------------------
    def changer_statut(self, rdv_id: str, statut: StatutRDV, version_attendue: Optional[int] = None) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        cible = workflow.parse_statut(statut)
        workflow.verifier_transition(rdv.statut, cible)
        if rdv.statut == cible:
            return rdv
        logger.info("🔄 Statut %s: %s -> %s", rdv_id, rdv.statut.value, cible.value)
        rdv.statut = cible
        return self._enregistrer(rdv)

    def valider(
        self,
        rdv_id: str,
        format_rdv: Optional[CanalRDV] = None,
        date_rdv: Optional[datetime] = None,
        version_attendue: Optional[int] = None,
    ) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        workflow.verifier_validation(rdv.statut)
        rdv.statut = StatutRDV.RDV_PLANIFIE
        if format_rdv is not None:
            rdv.format_rdv = format_rdv
        if date_rdv is not None:
            rdv.date_rdv = date_rdv
        logger.info("✅ Rendez-vous %s validé", rdv_id)
        return self._enregistrer(rdv)

    def annuler(self, rdv_id: str, raison: Optional[str] = None, version_attendue: Optional[int] = None) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        rdv.statut = StatutRDV.ANNULE
        if raison is not None:
            rdv.raison_annulation = raison
        logger.info("❌ Rendez-vous %s annulé", rdv_id)
        return self._enregistrer(rdv)

    def reprogrammer(
        self,
        rdv_id: str,
        date_rdv: datetime,
        format_rdv: Optional[CanalRDV] = None,
        version_attendue: Optional[int] = None,
    ) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        workflow.verifier_reprogrammation(rdv.statut)
        rdv.date_rdv = date_rdv
        if format_rdv is not None:
            rdv.format_rdv = format_rdv
        return self._enregistrer(rdv)

    def editer_compte_rendu(
        self,
        rdv_id: str,
        synthese: str,
        notes: Optional[str] = None,
        version_attendue: Optional[int] = None,
    ) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        workflow.verifier_mutation_terminale(rdv.statut, "compte rendu")
        rdv.synthese = synthese
        if notes is not None:
            rdv.notes = notes
        return self._enregistrer(rdv)

    # ----------------------------
    # Impact
    # ----------------------------
    def planifier_impact(self, parent_id: str, date_impact: Optional[datetime] = None) -> Rendezvous:
        parent = self.obtenir(parent_id)
        workflow.verifier_parent_impact(parent.type)

        existant = self.session.exec(
            select(Rendezvous).where(Rendezvous.rendezvous_parent_id == parent_id)
        ).first()
        if existant:
            logger.warning("⚠️ Un rendez-vous d'impact existe déjà pour %s (%s)", parent_id, existant.id)

        date_impact = date_impact or workflow.date_impact_par_defaut()
        copie = {champ: getattr(parent, champ) for champ in CHAMPS_COPIES_IMPACT}
        impact = Rendezvous(
            type=TypeRDV.IMPACT,
            statut=StatutRDV.IMPACT,
            rendezvous_parent_id=parent_id,
            date_impact=date_impact,
            date_rdv=date_impact,
            **copie,
        )
        self.session.add(impact)
        self.session.commit()
        self.session.refresh(impact)
        logger.info("📆 Impact %s planifié pour %s au %s", impact.id, parent_id, date_impact.date())
        return impact

    def _appliquer_evaluation(self, rdv: Rendezvous, data: EvaluationImpactRequest, obligatoire: bool) -> bool:
        """Fusionne l'évaluation ; retourne True si une satisfaction valide a été fournie"""
        donnees = data.model_dump(exclude_unset=True)
        echelle = donnees.pop("echelle_satisfaction", None)
        note = donnees.get("satisfaction_impact")

        if note is not None:
            try:
                note = convertir_satisfaction(note, echelle)
            except ValueError as e:
                raise DonneesInvalides(str(e))
            donnees["satisfaction_impact"] = note

        if obligatoire or note is not None:
            resultat = validate_impact_evaluation({"satisfactionImpact": note})
            if not resultat.is_valid:
                raise DonneesInvalides(resultat.errors[0], details=resultat.errors)

        for field, value in donnees.items():
            setattr(rdv, field, value)
        return note is not None

    def completer_evaluation_impact(
        self, rdv_id: str, data: EvaluationImpactRequest, version_attendue: Optional[int] = None
    ) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        workflow.verifier_rendezvous_impact(rdv.type)
        workflow.verifier_transition(rdv.statut, StatutRDV.IMPACT_COMPLETE)
        self._appliquer_evaluation(rdv, data, obligatoire=True)
        rdv.statut = StatutRDV.IMPACT_COMPLETE
        return self._enregistrer(rdv)

    def save_impact_evaluation(
        self, rdv_id: str, data: EvaluationImpactRequest, version_attendue: Optional[int] = None
    ) -> Rendezvous:
        """Enregistrement partiel (brouillon) ; complète l'impact si la satisfaction est fournie"""
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        workflow.verifier_rendezvous_impact(rdv.type)
        workflow.verifier_mutation_terminale(rdv.statut, "évaluation d'impact")
        complete = self._appliquer_evaluation(rdv, data, obligatoire=False)
        if complete and rdv.statut == StatutRDV.IMPACT:
            rdv.statut = StatutRDV.IMPACT_COMPLETE
        return self._enregistrer(rdv)

    def terminer_impact(self, rdv_id: str, version_attendue: Optional[int] = None) -> Rendezvous:
        rdv = self._obtenir_pour_ecriture(rdv_id, version_attendue)
        workflow.verifier_rendezvous_impact(rdv.type)
        workflow.verifier_transition(rdv.statut, StatutRDV.IMPACT_TERMINE)
        if rdv.statut == StatutRDV.IMPACT_TERMINE:
            return rdv
        rdv.statut = StatutRDV.IMPACT_TERMINE
        logger.info("🏁 Impact %s terminé", rdv_id)
        return self._enregistrer(rdv)

    def generer_rapport_impact(self, rdv_id: str) -> Dict[str, str]:
        rdv = self.obtenir(rdv_id)
        workflow.verifier_rendezvous_impact(rdv.type)
        return {"rapportUrl": f"/api/rendezvous/{rdv.id}/impact/rapport/document"}

    # ----------------------------
    # Programme personnalisé
    # ----------------------------
    def generer_programme_et_dossier(self, rdv_id: str) -> Tuple[ProgrammeFormation, DossierFormation]:
        rdv = self.obtenir(rdv_id)
        beneficiaire = f"{rdv.prenom or ''} {rdv.nom or ''}".strip() or "Bénéficiaire"
        titre = rdv.formation_titre or rdv.formation_selectionnee or f"Programme personnalisé - {beneficiaire}"
        objectifs = [o.strip() for o in (rdv.objectifs or "").split(",") if o.strip()]

        programme = ProgrammeFormation(
            code=ProgrammeService.code_disponible(
                self.session, f"PP-{_maintenant():%Y%m%d}-{rdv.id[:8].upper()}"
            ),
            type=TypeProgramme.PERSONNALISE,
            titre=titre,
            description=rdv.attentes or rdv.situation_actuelle or "",
            duree="À définir",
            prix="Sur devis",
            niveau=rdv.niveau or "Non spécifié",
            participants="1",
            objectifs=objectifs,
            public_concerne=beneficiaire,
            est_visible=False,
            rendezvous_id=rdv.id,
        )
        self.session.add(programme)
        self.session.flush()

        dossier = DossierFormation(
            rendezvous_id=rdv.id,
            programme_id=programme.id,
            statut=StatutDossier.BROUILLON,
        )
        self.session.add(dossier)
        self.session.commit()
        self.session.refresh(programme)
        self.session.refresh(dossier)
        logger.info("📄 Programme %s et dossier %s générés pour %s", programme.id, dossier.id, rdv_id)
        return programme, dossier

    # ----------------------------
    # Statistiques
    # ----------------------------
    def statistiques(self) -> Dict[str, Any]:
        rdv_list = self.session.exec(select(Rendezvous)).all()
        total = len(rdv_list)

        par_statut = {statut.value: 0 for statut in StatutRDV}
        par_type = {type_rdv.value: 0 for type_rdv in TypeRDV}
        satisfactions = []
        for rdv in rdv_list:
            par_statut[rdv.statut.value] += 1
            par_type[rdv.type.value] += 1
            if rdv.satisfaction_impact is not None:
                satisfactions.append(rdv.satisfaction_impact)

        termines = par_statut[StatutRDV.TERMINE.value]
        return {
            "total": total,
            "parStatut": par_statut,
            "parType": par_type,
            "tauxRealisation": (termines / total * 100) if total > 0 else 0,
            "satisfactionMoyenne": (sum(satisfactions) / len(satisfactions)) if satisfactions else None,
        }
