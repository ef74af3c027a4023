# gestion_formation_hub/models/enums.py
from enum import Enum


class TypeRDV(str, Enum):
    POSITIONNEMENT = "positionnement"
    IMPACT = "impact"
    SUIVI = "suivi"
    INFORMATION = "information"


class StatutRDV(str, Enum):
    NOUVEAU = "nouveau"
    RDV_PLANIFIE = "rdv_planifie"
    CONFIRME = "confirme"
    EN_COURS = "en_cours"
    TERMINE = "termine"
    ANNULE = "annule"
    REPORTE = "reporte"
    IMPACT = "impact"
    IMPACT_COMPLETE = "impact_complete"
    IMPACT_TERMINE = "impact_termine"


class CanalRDV(str, Enum):
    VISIO = "visio"
    PRESENTIEL = "presentiel"
    TELEPHONE = "telephone"


class TypeProgramme(str, Enum):
    CATALOGUE = "catalogue"
    PERSONNALISE = "personnalise"


class StatutDossier(str, Enum):
    BROUILLON = "brouillon"
    EN_COURS = "en_cours"
    VALIDE = "valide"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    FORMATEUR = "formateur"


class TypeVeille(str, Enum):
    REGLEMENTAIRE = "reglementaire"
    METIER = "metier"
    INNOVATION = "innovation"


class StatutVeille(str, Enum):
    NOUVELLE = "nouvelle"
    EN_COURS = "en-cours"
    TERMINEE = "terminee"


class StatutReclamation(str, Enum):
    NOUVELLE = "nouvelle"
    EN_COURS = "en_cours"
    RESOLUE = "resolue"
    FERMEE = "fermee"


class PrioriteReclamation(str, Enum):
    BASSE = "basse"
    NORMALE = "normale"
    HAUTE = "haute"
    URGENTE = "urgente"


class StatutActionCorrective(str, Enum):
    PLANIFIEE = "planifiee"
    EN_COURS = "en_cours"
    TERMINEE = "terminee"
    ANNULEE = "annulee"


class PrioriteActionCorrective(str, Enum):
    FAIBLE = "faible"
    MOYENNE = "moyenne"
    HAUTE = "haute"
    CRITIQUE = "critique"


class OrigineActionCorrective(str, Enum):
    RECLAMATION = "reclamation"
    INCIDENT = "incident"
    AUDIT = "audit"
    VEILLE = "veille"
