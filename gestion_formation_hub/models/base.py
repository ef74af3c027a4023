# gestion_formation_hub/models/base.py
import uuid
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field, Relationship

from .enums import (
    TypeRDV, StatutRDV, CanalRDV, TypeProgramme, StatutDossier, UserRole,
    TypeVeille, StatutVeille, StatutReclamation, PrioriteReclamation,
    StatutActionCorrective, PrioriteActionCorrective, OrigineActionCorrective,
)


def _uuid() -> str:
    return str(uuid.uuid4())


def _maintenant() -> datetime:
    return datetime.now(timezone.utc)


class Rendezvous(SQLModel, table=True):
    """Rendez-vous de positionnement, de suivi ou d'impact"""
    id: str = Field(default_factory=_uuid, primary_key=True)
    type: TypeRDV = TypeRDV.POSITIONNEMENT
    statut: StatutRDV = Field(default=StatutRDV.NOUVEAU, index=True)

    # Bénéficiaire
    nom: Optional[str] = None
    prenom: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    telephone: Optional[str] = None

    # Entreprise
    entreprise: Optional[str] = None
    siret: Optional[str] = None
    adresse_entreprise: Optional[str] = None
    interlocuteur_nom: Optional[str] = None
    interlocuteur_fonction: Optional[str] = None
    interlocuteur_email: Optional[str] = None
    interlocuteur_telephone: Optional[str] = None

    # Handicap / financement
    has_handicap: Optional[bool] = None
    details_handicap: Optional[str] = None
    besoin_handicap: Optional[str] = None
    is_financement: Optional[bool] = None
    type_financement: Optional[str] = None
    organisme_financeur: Optional[str] = None

    # Planification
    date_rdv: Optional[datetime] = None
    format_rdv: Optional[CanalRDV] = None
    duree_rdv: Optional[int] = None
    lieu_rdv: Optional[str] = None
    lien_visio: Optional[str] = None
    date_contact: Optional[datetime] = None
    disponibilites: Optional[str] = None
    format_souhaite: Optional[str] = None
    date_debut_souhaitee: Optional[str] = None
    date_fin_souhaitee: Optional[str] = None

    # Contenu pédagogique (objectifs stockés en texte "a, b")
    formation_titre: Optional[str] = None
    formation_selectionnee: Optional[str] = None
    objectifs: Optional[str] = None
    niveau: Optional[str] = None
    situation_actuelle: Optional[str] = None
    attentes: Optional[str] = None
    pratique_actuelle: Optional[str] = None
    competences_actuelles: Optional[str] = None
    competences_recherchees: Optional[str] = None

    # Impact
    rendezvous_parent_id: Optional[str] = Field(default=None, foreign_key="rendezvous.id", index=True)
    date_impact: Optional[datetime] = None
    satisfaction_impact: Optional[int] = None
    competences_appliquees: Optional[str] = None
    ameliorations_suggeres: Optional[str] = None
    commentaires_impact: Optional[str] = None

    # Compte rendu
    synthese: Optional[str] = None
    notes: Optional[str] = None
    commentaires: Optional[str] = None
    raison_annulation: Optional[str] = None

    version: int = 1
    created_at: datetime = Field(default_factory=_maintenant)
    updated_at: Optional[datetime] = None


class CategorieProgramme(SQLModel, table=True):
    __tablename__ = "categorie_programme"

    id: str = Field(default_factory=_uuid, primary_key=True)
    code: str = Field(unique=True, index=True)
    titre: str
    description: Optional[str] = None
    ordre: int = 0

    programmes: List["ProgrammeFormation"] = Relationship(back_populates="categorie")


class ProgrammeFormation(SQLModel, table=True):
    """Programme de formation (catalogue ou personnalisé)"""
    __tablename__ = "programme_formation"

    id: str = Field(default_factory=_uuid, primary_key=True)
    code: str = Field(unique=True, index=True)
    type: TypeProgramme = TypeProgramme.CATALOGUE
    titre: str
    description: str = ""
    duree: str
    prix: str
    niveau: str = "Non spécifié"
    participants: str = "Non spécifié"
    objectifs: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    prerequis: str = "Aucun prérequis spécifique"
    public_concerne: str = "Tout public"
    contenu_detaille_jours: str = ""

    modalites: str = "En présentiel individuel"
    modalites_acces: str = "Inscription en ligne ou par téléphone"
    modalites_techniques: str = "Matériel fourni sur place"
    modalites_reglement: str = "Paiement par virement bancaire"

    formateur: str = "Formateur expert"
    ressources_disposition: str = "Support de cours et exercices pratiques"
    modalites_evaluation: str = "Évaluation continue et QCM final"
    sanction_formation: str = "Attestation de fin de formation"
    niveau_certification: str = ""

    delai_acceptation: str = "15 jours avant le début de formation"
    accessibilite_handicap: str = "Locaux accessibles PMR - Nous consulter pour adaptations spécifiques"
    cessation_abandon: str = "Remboursement au prorata selon conditions générales"

    categorie_id: Optional[str] = Field(default=None, foreign_key="categorie_programme.id")
    pictogramme: str = "📚"
    est_actif: bool = True
    est_visible: bool = True
    version: int = 1
    rendezvous_id: Optional[str] = Field(default=None, foreign_key="rendezvous.id")

    created_at: datetime = Field(default_factory=_maintenant)
    updated_at: Optional[datetime] = None

    categorie: Optional[CategorieProgramme] = Relationship(back_populates="programmes")


class DossierFormation(SQLModel, table=True):
    __tablename__ = "dossier_formation"

    id: str = Field(default_factory=_uuid, primary_key=True)
    rendezvous_id: str = Field(foreign_key="rendezvous.id", index=True)
    programme_id: str = Field(foreign_key="programme_formation.id")
    statut: StatutDossier = StatutDossier.BROUILLON
    created_at: datetime = Field(default_factory=_maintenant)
    updated_at: Optional[datetime] = None


class User(SQLModel, table=True):
    """Utilisateur synchronisé depuis le fournisseur d'identité"""
    __tablename__ = "utilisateur"

    id: str = Field(default_factory=_uuid, primary_key=True)
    external_id: Optional[str] = Field(default=None, unique=True, index=True)
    email: str = Field(unique=True, index=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_maintenant)
    updated_at: Optional[datetime] = None


class Veille(SQLModel, table=True):
    """Veille réglementaire, métier ou innovation"""
    id: str = Field(default_factory=_uuid, primary_key=True)
    titre: str
    description: str
    type: TypeVeille
    statut: StatutVeille = StatutVeille.NOUVELLE
    avancement: int = 0
    date_echeance: Optional[datetime] = None
    date_creation: datetime = Field(default_factory=_maintenant)
    date_modification: Optional[datetime] = None

    commentaires: List["VeilleCommentaire"] = Relationship(
        back_populates="veille",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    historique: List["VeilleHistorique"] = Relationship(
        back_populates="veille",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class VeilleCommentaire(SQLModel, table=True):
    __tablename__ = "veille_commentaire"

    id: str = Field(default_factory=_uuid, primary_key=True)
    veille_id: str = Field(foreign_key="veille.id", index=True)
    contenu: str
    utilisateur: str = "Système"
    date_creation: datetime = Field(default_factory=_maintenant)

    veille: Optional[Veille] = Relationship(back_populates="commentaires")


class VeilleHistorique(SQLModel, table=True):
    __tablename__ = "veille_historique"

    id: str = Field(default_factory=_uuid, primary_key=True)
    veille_id: str = Field(foreign_key="veille.id", index=True)
    action: str
    details: Optional[str] = None
    utilisateur: str = "Système"
    date_creation: datetime = Field(default_factory=_maintenant)

    veille: Optional[Veille] = Relationship(back_populates="historique")


class Reclamation(SQLModel, table=True):
    """Réclamation d'un bénéficiaire ou d'un client (suivi qualité)"""
    id: str = Field(default_factory=_uuid, primary_key=True)
    nom: str
    email: str
    telephone: Optional[str] = None
    sujet: str
    message: str
    priorite: PrioriteReclamation = PrioriteReclamation.NORMALE
    statut: StatutReclamation = Field(default=StatutReclamation.NOUVELLE, index=True)
    assignee_id: Optional[str] = Field(default=None, foreign_key="utilisateur.id")
    notes_internes: Optional[str] = None
    date_resolution: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_maintenant)
    updated_at: Optional[datetime] = None

    actions_correctives: List["ActionCorrective"] = Relationship(back_populates="reclamation")


class ActionCorrective(SQLModel, table=True):
    """Action corrective issue d'une réclamation, d'un incident, d'un audit ou de la veille"""
    __tablename__ = "action_corrective"

    id: str = Field(default_factory=_uuid, primary_key=True)
    titre: str
    description: str
    statut: StatutActionCorrective = Field(default=StatutActionCorrective.PLANIFIEE, index=True)
    origine_type: OrigineActionCorrective
    origine_ref: Optional[str] = None
    origine_date: Optional[datetime] = None
    origine_resume: Optional[str] = None
    priorite: PrioriteActionCorrective = PrioriteActionCorrective.MOYENNE
    avancement: int = 0
    responsable_nom: Optional[str] = None
    responsable_email: Optional[str] = None
    date_echeance: Optional[datetime] = None
    indicateur_efficacite: Optional[str] = None
    reclamation_id: Optional[str] = Field(default=None, foreign_key="reclamation.id", index=True)
    created_at: datetime = Field(default_factory=_maintenant)
    updated_at: Optional[datetime] = None

    reclamation: Optional[Reclamation] = Relationship(back_populates="actions_correctives")
    historique: List["HistoriqueActionCorrective"] = Relationship(
        back_populates="action_corrective",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "HistoriqueActionCorrective.date_action.desc()",
        },
    )


class HistoriqueActionCorrective(SQLModel, table=True):
    __tablename__ = "historique_action_corrective"

    id: str = Field(default_factory=_uuid, primary_key=True)
    action_corrective_id: str = Field(foreign_key="action_corrective.id", index=True)
    action: str
    commentaire: Optional[str] = None
    utilisateur: str = "Système"
    date_action: datetime = Field(default_factory=_maintenant)

    action_corrective: Optional[ActionCorrective] = Relationship(back_populates="historique")
