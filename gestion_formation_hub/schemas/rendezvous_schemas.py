# gestion_formation_hub/schemas/rendezvous_schemas.py
"""
Schémas des rendez-vous

En entrée, chaque champ accepte le nom "legacy" (nom, status, formatRdv...)
et le nom canonique (nomBeneficiaire, statut, canal...), le legacy étant
lu en premier. En sortie, l'API émet la forme legacy en camelCase.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..models.enums import TypeRDV, StatutRDV, CanalRDV
from ..services.normalisation import joindre_objectifs, normaliser_statut
from .base import DateUTC


def _champ(*noms: str, default: Any = None) -> Any:
    """Champ lu sous plusieurs noms ; default=... le rend obligatoire"""
    return Field(default, validation_alias=AliasChoices(*noms))


class RendezvousEcriture(BaseModel):
    """Champs modifiables d'un rendez-vous (création et mise à jour)"""
    model_config = ConfigDict(extra="ignore")

    type: Optional[TypeRDV] = None

    # Bénéficiaire
    nom: Optional[str] = _champ("nom", "nomBeneficiaire")
    prenom: Optional[str] = _champ("prenom", "prenomBeneficiaire")
    email: Optional[str] = _champ("email", "emailBeneficiaire")
    telephone: Optional[str] = _champ("telephone", "telephoneBeneficiaire")

    # Entreprise
    entreprise: Optional[str] = None
    siret: Optional[str] = None
    adresse_entreprise: Optional[str] = _champ("adresseEntreprise", "adresse_entreprise")
    interlocuteur_nom: Optional[str] = _champ("interlocuteurNom", "interlocuteur_nom")
    interlocuteur_fonction: Optional[str] = _champ("interlocuteurFonction", "interlocuteur_fonction")
    interlocuteur_email: Optional[str] = _champ("interlocuteurEmail", "interlocuteur_email")
    interlocuteur_telephone: Optional[str] = _champ("interlocuteurTelephone", "interlocuteur_telephone")

    # Handicap / financement
    has_handicap: Optional[bool] = _champ("hasHandicap", "has_handicap")
    details_handicap: Optional[str] = _champ("detailsHandicap", "details_handicap")
    besoin_handicap: Optional[str] = _champ("besoinHandicap", "besoin_handicap")
    is_financement: Optional[bool] = _champ("isFinancement", "is_financement")
    type_financement: Optional[str] = _champ("typeFinancement", "type_financement")
    organisme_financeur: Optional[str] = _champ("organismeFinanceur", "organisme_financeur")

    # Planification
    date_rdv: Optional[DateUTC] = _champ("dateRdv", "date_rdv")
    format_rdv: Optional[CanalRDV] = _champ("formatRdv", "canal", "format_rdv")
    duree_rdv: Optional[int] = _champ("dureeRdv", "duree_rdv")
    lieu_rdv: Optional[str] = _champ("lieuRdv", "lieu_rdv")
    lien_visio: Optional[str] = _champ("lienVisio", "lien_visio")
    date_contact: Optional[DateUTC] = _champ("dateContact", "date_contact")
    disponibilites: Optional[str] = _champ("disponibilites", "dateDispo")
    format_souhaite: Optional[str] = _champ("formatSouhaite", "modaliteFormation", "format_souhaite")
    date_debut_souhaitee: Optional[str] = _champ("dateDebutSouhaitee", "date_debut_souhaitee")
    date_fin_souhaitee: Optional[str] = _champ("dateFinSouhaitee", "date_fin_souhaitee")

    # Contenu pédagogique
    formation_titre: Optional[str] = _champ("formationTitre", "formation_titre")
    formation_selectionnee: Optional[str] = _champ("formationSelectionnee", "formation_selectionnee")
    objectifs: Optional[str] = None
    niveau: Optional[str] = _champ("niveau", "niveauBeneficiaire")
    situation_actuelle: Optional[str] = _champ("situationActuelle", "situation_actuelle")
    attentes: Optional[str] = None
    pratique_actuelle: Optional[str] = _champ("pratiqueActuelle", "pratique_actuelle")
    competences_actuelles: Optional[str] = _champ("competencesActuelles", "competences_actuelles")
    competences_recherchees: Optional[str] = _champ("competencesRecherchees", "competences_recherchees")

    # Compte rendu
    synthese: Optional[str] = None
    notes: Optional[str] = None
    commentaires: Optional[str] = None

    @field_validator("objectifs", mode="before")
    @classmethod
    def _joindre_objectifs(cls, v):
        return joindre_objectifs(v)


class RendezvousCreate(RendezvousEcriture):
    """Création : le statut initial est imposé par le service"""
    pass


class RendezvousUpdate(RendezvousEcriture):
    """Mise à jour générale ; un statut fourni passe par la machine à états"""
    statut: Optional[StatutRDV] = _champ("status", "statut")

    @field_validator("statut", mode="before")
    @classmethod
    def _alias_statut(cls, v):
        return normaliser_statut(v)


class StatutUpdate(BaseModel):
    statut: StatutRDV = _champ("statut", "status", default=...)

    @field_validator("statut", mode="before")
    @classmethod
    def _alias_statut(cls, v):
        return normaliser_statut(v)


class ValidationRequest(BaseModel):
    format_rdv: Optional[CanalRDV] = _champ("formatRdv", "canal")
    date_rdv: Optional[DateUTC] = _champ("dateRdv", "date_rdv")


class AnnulationRequest(BaseModel):
    raison: Optional[str] = None


class ReprogrammationRequest(BaseModel):
    date_rdv: DateUTC = _champ("dateRdv", "date_rdv", default=...)
    format_rdv: Optional[CanalRDV] = _champ("formatRdv", "canal")


class PlanificationImpactRequest(BaseModel):
    date_impact: Optional[DateUTC] = _champ("dateImpact", "date_impact")


class EvaluationImpactRequest(BaseModel):
    """Évaluation d'impact ; echelleSatisfaction indique l'échelle de la note (5 ou 10)"""
    model_config = ConfigDict(extra="ignore")

    satisfaction_impact: Optional[int] = _champ("satisfactionImpact", "satisfaction_impact")
    echelle_satisfaction: Optional[int] = Field(
        None, gt=0, validation_alias=AliasChoices("echelleSatisfaction", "echelle_satisfaction"),
    )
    competences_appliquees: Optional[str] = _champ("competencesAppliquees", "competences_appliquees")
    ameliorations_suggeres: Optional[str] = _champ("ameliorationsSuggeres", "ameliorations_suggeres")
    commentaires_impact: Optional[str] = _champ("commentairesImpact", "commentaires_impact")
    date_impact: Optional[DateUTC] = _champ("dateImpact", "date_impact")


class CompteRenduRequest(BaseModel):
    synthese: str
    notes: Optional[str] = None


class RendezvousResponse(BaseModel):
    """Forme émise par l'API (legacy, camelCase)"""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )

    id: str
    type: TypeRDV
    statut: StatutRDV = Field(serialization_alias="status")
    nom: Optional[str] = None
    prenom: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    entreprise: Optional[str] = None
    siret: Optional[str] = None
    adresse_entreprise: Optional[str] = None
    interlocuteur_nom: Optional[str] = None
    interlocuteur_fonction: Optional[str] = None
    interlocuteur_email: Optional[str] = None
    interlocuteur_telephone: Optional[str] = None
    has_handicap: Optional[bool] = None
    details_handicap: Optional[str] = None
    besoin_handicap: Optional[str] = None
    is_financement: Optional[bool] = None
    type_financement: Optional[str] = None
    organisme_financeur: Optional[str] = None
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
    formation_titre: Optional[str] = None
    formation_selectionnee: Optional[str] = None
    objectifs: Optional[str] = None
    niveau: Optional[str] = None
    situation_actuelle: Optional[str] = None
    attentes: Optional[str] = None
    pratique_actuelle: Optional[str] = None
    competences_actuelles: Optional[str] = None
    competences_recherchees: Optional[str] = None
    rendezvous_parent_id: Optional[str] = None
    date_impact: Optional[datetime] = None
    satisfaction_impact: Optional[int] = None
    competences_appliquees: Optional[str] = None
    ameliorations_suggeres: Optional[str] = None
    commentaires_impact: Optional[str] = None
    synthese: Optional[str] = None
    notes: Optional[str] = None
    commentaires: Optional[str] = None
    raison_annulation: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def rendezvous_vers_api(rdv) -> dict:
    return RendezvousResponse.model_validate(rdv).model_dump(mode="json", by_alias=True)
