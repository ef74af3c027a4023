"""
Normalisation des champs de rendez-vous

Deux conventions de nommage coexistent dans les données reçues :
- la forme "legacy" exposée par l'API (nom, prenom, status, formatRdv, ...)
- la forme canonique utilisée par la logique métier (nomBeneficiaire,
  prenomBeneficiaire, statut, canal, ...)

Ce module convertit dans les deux sens et sait lire les différentes
enveloppes de réponse ({data: [...]}, {data: {...}}, tableau nu, ...).
Aucune fonction de lecture ne lève d'exception sur des données mal typées,
sauf le parseur d'enveloppe lorsque la forme est inexploitable.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# canonique -> legacy ; le nom legacy est prioritaire en lecture
CHAMPS_RECONCILIES: Dict[str, str] = {
    "statut": "status",
    "nomBeneficiaire": "nom",
    "prenomBeneficiaire": "prenom",
    "emailBeneficiaire": "email",
    "telephoneBeneficiaire": "telephone",
    "niveauBeneficiaire": "niveau",
    "canal": "formatRdv",
    "formationSelectionnee": "formationTitre",
    "dateDispo": "disponibilites",
    "modaliteFormation": "formatSouhaite",
}

# Champs identiques dans les deux conventions
CHAMPS_DIRECTS = (
    "id", "type",
    "situationActuelle", "attentes", "pratiqueActuelle",
    "dateRdv", "dureeRdv", "lieuRdv", "lienVisio", "synthese", "notes",
    "isFinancement", "typeFinancement", "organismeFinanceur",
    "hasHandicap", "detailsHandicap", "besoinHandicap",
    "entreprise", "siret", "adresseEntreprise",
    "interlocuteurNom", "interlocuteurFonction", "interlocuteurEmail", "interlocuteurTelephone",
    "commentaires", "raisonAnnulation",
    "dateImpact", "satisfactionImpact", "competencesAppliquees",
    "ameliorationsSuggeres", "commentairesImpact", "rendezvousParentId",
    "competencesActuelles", "competencesRecherchees",
    "dateContact", "dateDebutSouhaitee", "dateFinSouhaitee",
    "version", "createdAt", "updatedAt",
)

# Formulaire canonique -> payload API (le reste est transmis tel quel)
CHAMPS_SORTANTS: Dict[str, str] = {
    "prenomBeneficiaire": "prenom",
    "nomBeneficiaire": "nom",
    "emailBeneficiaire": "email",
    "telephoneBeneficiaire": "telephone",
    "niveauBeneficiaire": "niveau",
}

CHAMPS_FORMULAIRE = (
    "formationSelectionnee", "commentaires", "situationActuelle", "attentes",
    "dateRdv", "canal", "synthese", "dateDispo", "modaliteFormation",
    "entreprise", "siret", "adresseEntreprise",
    "interlocuteurNom", "interlocuteurFonction", "interlocuteurEmail", "interlocuteurTelephone",
    "hasHandicap", "detailsHandicap", "besoinHandicap",
    "isFinancement", "typeFinancement", "organismeFinanceur",
)

ALIAS_STATUTS = {"planifie": "rdv_planifie"}


def normaliser_statut(statut: Any) -> Any:
    """Ramène les alias de statut ('planifie') sur leur valeur canonique"""
    if isinstance(statut, str):
        return ALIAS_STATUTS.get(statut, statut)
    return statut


def _premier_renseigne(donnees: Dict[str, Any], *cles: str) -> Any:
    # Premier champ non vide ; sinon None (y compris null explicite)
    for cle in cles:
        valeur = donnees.get(cle)
        if valeur is not None and valeur != "":
            return valeur
    return None


def coercer_objectifs(objectifs: Any) -> Optional[List[Any]]:
    """Liste -> inchangée, chaîne -> [chaîne], None/vide -> None"""
    if objectifs is None or objectifs == "":
        return None
    if isinstance(objectifs, list):
        return objectifs
    if isinstance(objectifs, tuple):
        return list(objectifs)
    return [objectifs]


def map_api_data_to_rendezvous(api_data: Any) -> Dict[str, Any]:
    """
    Convertit un rendez-vous reçu de l'API vers la forme canonique.

    Le nom legacy l'emporte quand les deux noms sont fournis
    ({"nom": "A", "nomBeneficiaire": "B"} -> nomBeneficiaire == "A").
    Les valeurs mal typées sont conservées telles quelles.
    """
    if not isinstance(api_data, dict):
        api_data = {}

    rendezvous: Dict[str, Any] = {cle: api_data.get(cle) for cle in CHAMPS_DIRECTS}
    for canonique, legacy in CHAMPS_RECONCILIES.items():
        rendezvous[canonique] = _premier_renseigne(api_data, legacy, canonique)

    rendezvous["statut"] = normaliser_statut(rendezvous["statut"])
    rendezvous["objectifs"] = coercer_objectifs(api_data.get("objectifs"))
    return rendezvous


def joindre_objectifs(objectifs: Any) -> Any:
    if isinstance(objectifs, (list, tuple)):
        return ", ".join(str(o) for o in objectifs)
    return objectifs


def prepare_rendezvous_for_api(form_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Prépare les données d'un formulaire (forme canonique) pour l'API.

    Les objectifs sont toujours envoyés sous forme de chaîne "a, b" ;
    le type vaut 'positionnement' par défaut.
    """
    payload: Dict[str, Any] = {"type": form_data.get("type") or "positionnement"}
    for canonique, legacy in CHAMPS_SORTANTS.items():
        payload[legacy] = form_data.get(canonique)
    payload["objectifs"] = joindre_objectifs(form_data.get("objectifs"))
    for cle in CHAMPS_FORMULAIRE:
        payload[cle] = form_data.get(cle)
    return payload


def sans_valeurs_vides(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Retire les clés à None (équivalent des 'undefined' non sérialisés)"""
    return {cle: valeur for cle, valeur in payload.items() if valeur is not None}


# ----------------------------
# Enveloppes de réponse
# ----------------------------

CLES_ENVELOPPE = ("data", "rendezvous")


@dataclass
class Enveloppe:
    """Réponse normalisée : soit une liste d'éléments, soit un élément"""
    items: Optional[List[Any]] = None
    item: Optional[Dict[str, Any]] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def est_liste(self) -> bool:
        return self.items is not None


def parser_enveloppe(body: Any, profondeur_max: int = 4) -> Enveloppe:
    """
    Déballe {data: ...}, {data: {data: ...}}, {data: {rendezvous: ...}},
    {rendezvous: ...}, un tableau nu ou un objet nu.

    Lève ValueError si le contenu final n'est ni une liste ni un objet.
    """
    extras: Dict[str, Any] = {}
    courant = body
    for _ in range(profondeur_max):
        if not isinstance(courant, dict):
            break
        cle = next((c for c in CLES_ENVELOPPE if c in courant), None)
        if cle is None:
            break
        extras.update({k: v for k, v in courant.items() if k != cle})
        courant = courant[cle]

    if isinstance(courant, list):
        return Enveloppe(items=courant, extras=extras)
    if isinstance(courant, dict):
        return Enveloppe(item=courant, extras=extras)
    raise ValueError(f"Enveloppe de réponse inexploitable: {type(courant).__name__}")


def extraire_liste(body: Any) -> List[Any]:
    enveloppe = parser_enveloppe(body)
    if not enveloppe.est_liste:
        raise ValueError("Une liste de rendez-vous était attendue")
    return enveloppe.items


def extraire_rendezvous(body: Any) -> Dict[str, Any]:
    """Un rendez-vous unique, quelle que soit l'enveloppe (tableau -> 1er élément)"""
    enveloppe = parser_enveloppe(body)
    element = enveloppe.item
    if enveloppe.est_liste:
        element = enveloppe.items[0] if enveloppe.items else None
    if not isinstance(element, dict) or element.get("id") in (None, ""):
        raise ValueError("Aucun rendez-vous identifiable dans la réponse")
    return element
