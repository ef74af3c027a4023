"""
Machine à états des rendez-vous

Les transitions autorisées pour un changement de statut générique sont
déclarées dans TRANSITIONS ; les opérations métier (valider, annuler,
terminer l'impact, ...) passent par les fonctions de garde ci-dessous.
"""
import calendar
import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional, Union

from ..core.config import settings
from ..core.exceptions import DonneesInvalides, TransitionInvalide
from ..models.enums import StatutRDV, TypeRDV
from .normalisation import normaliser_statut

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[StatutRDV, FrozenSet[StatutRDV]] = {
    StatutRDV.NOUVEAU: frozenset({
        StatutRDV.RDV_PLANIFIE, StatutRDV.CONFIRME, StatutRDV.ANNULE, StatutRDV.REPORTE,
    }),
    StatutRDV.RDV_PLANIFIE: frozenset({
        StatutRDV.CONFIRME, StatutRDV.EN_COURS, StatutRDV.TERMINE, StatutRDV.ANNULE, StatutRDV.REPORTE,
    }),
    StatutRDV.CONFIRME: frozenset({
        StatutRDV.EN_COURS, StatutRDV.TERMINE, StatutRDV.ANNULE, StatutRDV.REPORTE,
    }),
    StatutRDV.EN_COURS: frozenset({StatutRDV.TERMINE, StatutRDV.ANNULE}),
    StatutRDV.REPORTE: frozenset({StatutRDV.RDV_PLANIFIE, StatutRDV.CONFIRME, StatutRDV.ANNULE}),
    StatutRDV.IMPACT: frozenset({StatutRDV.IMPACT_COMPLETE, StatutRDV.IMPACT_TERMINE, StatutRDV.ANNULE}),
    StatutRDV.IMPACT_COMPLETE: frozenset({StatutRDV.IMPACT_TERMINE}),
    StatutRDV.TERMINE: frozenset(),
    StatutRDV.ANNULE: frozenset(),
    StatutRDV.IMPACT_TERMINE: frozenset(),
}

STATUTS_TERMINAUX = frozenset({StatutRDV.TERMINE, StatutRDV.ANNULE, StatutRDV.IMPACT_TERMINE})


def parse_statut(valeur: Union[str, StatutRDV]) -> StatutRDV:
    """Convertit une valeur reçue (alias compris) en StatutRDV"""
    try:
        return StatutRDV(normaliser_statut(valeur))
    except ValueError:
        raise DonneesInvalides(f"Statut inconnu: {valeur}")


def est_terminal(statut: StatutRDV) -> bool:
    return statut in STATUTS_TERMINAUX


def verifier_transition(actuel: StatutRDV, cible: StatutRDV) -> None:
    """Lève TransitionInvalide si le passage actuel -> cible n'est pas permis"""
    if actuel == cible:
        return
    if cible not in TRANSITIONS.get(actuel, frozenset()):
        raise TransitionInvalide(
            f"Transition de statut impossible: {actuel.value} -> {cible.value}"
        )


def verifier_validation(actuel: StatutRDV) -> None:
    if actuel == StatutRDV.ANNULE:
        raise TransitionInvalide("Un rendez-vous annulé ne peut pas être validé")


def verifier_reprogrammation(actuel: StatutRDV) -> None:
    if actuel == StatutRDV.ANNULE:
        raise TransitionInvalide("Un rendez-vous annulé ne peut pas être reprogrammé")
    verifier_mutation_terminale(actuel, "reprogrammation")


def verifier_mutation_terminale(actuel: StatutRDV, operation: str) -> None:
    """Applique ALLOW_MUTATION_AFTER_TERMINAL aux éditions hors machine à états"""
    if not est_terminal(actuel):
        return
    if settings.ALLOW_MUTATION_AFTER_TERMINAL:
        logger.info("✏️ %s sur un rendez-vous au statut terminal %s", operation, actuel.value)
        return
    raise TransitionInvalide(
        f"Opération impossible ({operation}) sur un rendez-vous au statut {actuel.value}"
    )


def verifier_parent_impact(type_parent: TypeRDV) -> None:
    if type_parent != TypeRDV.POSITIONNEMENT:
        raise DonneesInvalides(
            "Un rendez-vous d'impact ne peut être rattaché qu'à un rendez-vous de positionnement"
        )


def verifier_rendezvous_impact(type_rdv: TypeRDV) -> None:
    if type_rdv != TypeRDV.IMPACT:
        raise DonneesInvalides("Ce rendez-vous n'est pas un rendez-vous d'impact")


def verifier_changement_type(actuel: TypeRDV, cible: TypeRDV, a_des_impacts: bool) -> None:
    """Un rattachement d'impact exige un parent de positionnement"""
    if cible == actuel:
        return
    if actuel == TypeRDV.IMPACT:
        raise DonneesInvalides("Le type d'un rendez-vous d'impact ne peut pas être modifié")
    if cible == TypeRDV.IMPACT:
        raise DonneesInvalides("Un rendez-vous d'impact se crée par la planification d'impact")
    if a_des_impacts:
        raise DonneesInvalides(
            "Impossible de changer le type : des rendez-vous d'impact sont rattachés à ce rendez-vous"
        )


def ajouter_mois(date: datetime, mois: int) -> datetime:
    """Ajoute des mois calendaires ; le jour est ramené au dernier jour du mois si besoin"""
    index = date.month - 1 + mois
    annee = date.year + index // 12
    mois_cible = index % 12 + 1
    jour = min(date.day, calendar.monthrange(annee, mois_cible)[1])
    return date.replace(year=annee, month=mois_cible, day=jour)


def date_impact_par_defaut(maintenant: Optional[datetime] = None) -> datetime:
    maintenant = maintenant or datetime.now(timezone.utc)
    return ajouter_mois(maintenant, settings.IMPACT_DELAI_MOIS)
