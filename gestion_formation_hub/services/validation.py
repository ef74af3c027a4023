"""
Validation locale des données de rendez-vous (avant tout appel réseau)
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core.config import settings

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# 0XXXXXXXXX, +33 / 0033, séparateurs espace . -
PHONE_REGEX = re.compile(r"^(?:(?:\+|00)33|0)\s*[1-9](?:[\s.-]*\d{2}){4}$")

LIBELLES_STATUT = {
    "nouveau": "Nouveau",
    "rdv_planifie": "RDV Planifié",
    "confirme": "Confirmé",
    "en_cours": "En cours",
    "termine": "Terminé",
    "annule": "Annulé",
    "reporte": "Reporté",
    "impact": "Impact",
    "impact_complete": "Impact complété",
    "impact_termine": "Impact terminé",
}

LIBELLES_CANAL = {
    "visio": "Visio",
    "presentiel": "Présentiel",
    "telephone": "Téléphone",
}


@dataclass
class ResultatValidation:
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_email(email: Any) -> bool:
    if not isinstance(email, str):
        return False
    return bool(EMAIL_REGEX.match(email))


def validate_phone(phone: Any) -> bool:
    if not isinstance(phone, str):
        return False
    return bool(PHONE_REGEX.match(re.sub(r"\s", "", phone)))


def _vide(valeur: Any) -> bool:
    return not isinstance(valeur, str) or not valeur.strip()


def validate_rendezvous_form_data(data: Dict[str, Any]) -> ResultatValidation:
    """Contrôle les champs obligatoires d'un formulaire de positionnement"""
    resultat = ResultatValidation()

    if _vide(data.get("nomBeneficiaire")):
        resultat.errors.append("Le nom du bénéficiaire est obligatoire")

    if _vide(data.get("prenomBeneficiaire")):
        resultat.errors.append("Le prénom du bénéficiaire est obligatoire")

    email = data.get("emailBeneficiaire")
    if _vide(email):
        resultat.errors.append("L'email du bénéficiaire est obligatoire")
    elif not validate_email(email):
        resultat.errors.append("L'email du bénéficiaire n'est pas valide")

    # Téléphone optionnel mais valide si fourni
    telephone = data.get("telephoneBeneficiaire")
    if telephone and not validate_phone(telephone):
        resultat.errors.append("Le numéro de téléphone n'est pas valide")

    return resultat


def convertir_satisfaction(note: Any, echelle_source: Optional[int] = None) -> Any:
    """
    Ramène une note de satisfaction sur l'échelle de référence
    (SATISFACTION_ECHELLE_MAX). Une note 4/5 devient 8/10.

    Lève ValueError si l'échelle source n'est pas un entier positif.
    """
    echelle_cible = settings.SATISFACTION_ECHELLE_MAX
    if echelle_source is None or echelle_source == echelle_cible:
        return note
    if isinstance(echelle_source, bool) or not isinstance(echelle_source, int) or echelle_source <= 0:
        raise ValueError(f"L'échelle de satisfaction doit être un entier positif (reçu: {echelle_source})")
    if isinstance(note, bool) or not isinstance(note, (int, float)):
        return note
    return round(note * echelle_cible / echelle_source)


def validate_impact_evaluation(data: Dict[str, Any]) -> ResultatValidation:
    resultat = ResultatValidation()
    maximum = settings.SATISFACTION_ECHELLE_MAX
    satisfaction = data.get("satisfactionImpact")

    if satisfaction is None:
        resultat.errors.append("La satisfaction est obligatoire")
    elif isinstance(satisfaction, bool) or not isinstance(satisfaction, int) or not 1 <= satisfaction <= maximum:
        resultat.errors.append(f"La satisfaction doit être comprise entre 1 et {maximum}")

    return resultat


def format_rendezvous_for_display(rdv: Dict[str, Any]) -> Dict[str, str]:
    full_name = f"{rdv.get('prenomBeneficiaire') or ''} {rdv.get('nomBeneficiaire') or ''}".strip()

    formatted_date = ""
    date_rdv = rdv.get("dateRdv")
    if isinstance(date_rdv, str) and date_rdv:
        date_rdv = datetime.fromisoformat(date_rdv.replace("Z", "+00:00"))
    if isinstance(date_rdv, datetime):
        formatted_date = date_rdv.strftime("%d/%m/%Y %H:%M")

    statut = rdv.get("statut") or ""
    canal = rdv.get("canal") or ""

    return {
        "fullName": full_name,
        "formattedDate": formatted_date,
        "statusLabel": LIBELLES_STATUT.get(statut, statut),
        "canalLabel": LIBELLES_CANAL.get(canal) or canal or "Non spécifié",
    }
