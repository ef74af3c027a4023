"""
Client HTTP des rendez-vous (positionnement et impact)

Chaque opération envoie au plus une requête. Une erreur de transport, de
statut HTTP ou de forme de réponse est journalisée puis remplacée par une
erreur portant un message fixe propre à l'opération. La liste locale
`rendezvous` n'est modifiée qu'après un succès.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple, Union

import httpx

from ..core.config import settings
from ..services.normalisation import (
    CHAMPS_SORTANTS, extraire_liste, extraire_rendezvous, joindre_objectifs,
    map_api_data_to_rendezvous, parser_enveloppe, prepare_rendezvous_for_api,
    sans_valeurs_vides,
)
from ..services.validation import (
    convertir_satisfaction, validate_impact_evaluation, validate_rendezvous_form_data,
)
from .erreurs import (
    ConflitRendezvous, ErreurClient, ErreurReseauOuServeur, OperationEnCours,
    RendezvousIntrouvable, ReponseInvalide, TransitionRefusee, ValidationEchouee,
)
from .resultat import Err, Ok

logger = logging.getLogger(__name__)

BASE_PATH = "/api/rendezvous"

MESSAGE_FORMAT_INVALIDE = "Format de réponse invalide"
MESSAGE_FORMAT_INCORRECT = "Format de réponse incorrect"

MESSAGES_ERREUR: Dict[str, str] = {
    "fetch_rendezvous": "Impossible de charger les rendez-vous",
    "create_rendezvous": "Impossible de créer le rendez-vous",
    "update_rendezvous": "Impossible de mettre à jour le rendez-vous",
    "update_rendezvous_statut": "Impossible de mettre à jour le statut du rendez-vous",
    "delete_rendezvous": "Impossible de supprimer le rendez-vous",
    "valider_rendezvous": "Impossible de valider le rendez-vous",
    "annuler_rendezvous": "Impossible d'annuler le rendez-vous",
    "reprogrammer_rendezvous": "Impossible de reprogrammer le rendez-vous",
    "planifier_impact": "Impossible de planifier le rendez-vous d'impact",
    "completer_evaluation_impact": "Impossible de compléter l'évaluation d'impact",
    "save_impact_evaluation": "Impossible d'enregistrer l'évaluation d'impact",
    "terminer_impact": "Impossible de terminer le rendez-vous d'impact",
    "generer_rapport_impact": "Impossible de générer le rapport d'impact",
    "editer_compte_rendu": "Impossible de mettre à jour le compte rendu",
    "generer_programme_et_dossier": "Impossible de générer le programme et le dossier",
}


def _iso(valeur: Any) -> Any:
    if isinstance(valeur, datetime):
        return valeur.isoformat()
    return valeur


def _payload_partiel(data: Dict[str, Any]) -> Dict[str, Any]:
    """Données canoniques partielles -> payload API (seules les clés fournies)"""
    payload: Dict[str, Any] = {}
    for cle, valeur in data.items():
        if cle == "objectifs":
            valeur = joindre_objectifs(valeur)
        payload[CHAMPS_SORTANTS.get(cle, cle)] = _iso(valeur)
    return payload


def _chercher_rapport_url(body: Any, profondeur: int = 3) -> Optional[str]:
    # {rapportUrl}, {data: {rapportUrl}}, {message: {rapportUrl}} ...
    if not isinstance(body, dict) or profondeur < 0:
        return None
    url = body.get("rapportUrl")
    if isinstance(url, str) and url:
        return url
    for cle in ("data", "message"):
        url = _chercher_rapport_url(body.get(cle), profondeur - 1)
        if url:
            return url
    return None


class RendezvousClient:
    """Opérations du cycle de vie des rendez-vous côté client"""

    def __init__(
        self,
        http: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
    ):
        self._possede_http = http is None
        self._http = http or httpx.Client(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout or settings.API_TIMEOUT,
        )
        self._token = token
        self._verrou = threading.Lock()
        self._en_cours: Set[Tuple[str, Optional[str]]] = set()
        self.rendezvous: List[Dict[str, Any]] = []

    def close(self) -> None:
        if self._possede_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ----------------------------
    # Mécanique commune
    # ----------------------------
    @contextmanager
    def _operation(self, operation: str, rdv_id: Optional[str] = None):
        """Refuse une seconde invocation de la même opération sur le même id"""
        cle = (operation, rdv_id)
        with self._verrou:
            if cle in self._en_cours:
                logger.warning("⏳ %s déjà en cours pour %s", operation, rdv_id)
                raise OperationEnCours("Une opération est déjà en cours sur ce rendez-vous")
            self._en_cours.add(cle)
        try:
            yield
        finally:
            with self._verrou:
                self._en_cours.discard(cle)

    def _envoyer(
        self,
        operation: str,
        methode: str,
        url: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        version: Optional[int] = None,
    ) -> Any:
        headers: Dict[str, str] = {}
        if version is not None:
            headers["If-Match"] = f'"{version}"'
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            reponse = self._http.request(methode, url, json=json, params=params, headers=headers or None)
        except httpx.HTTPError as e:
            logger.error("❌ %s %s %s : %s", operation, methode, url, e)
            raise ErreurReseauOuServeur(MESSAGES_ERREUR[operation]) from e

        if reponse.is_error:
            raise self._erreur_http(operation, reponse)

        if not reponse.content:
            return None
        try:
            return reponse.json()
        except ValueError as e:
            logger.error("❌ %s : réponse non JSON (%s)", operation, e)
            raise ReponseInvalide(MESSAGE_FORMAT_INVALIDE) from e

    def _erreur_http(self, operation: str, reponse: httpx.Response) -> ErreurClient:
        try:
            corps = reponse.json()
        except ValueError:
            corps = {}
        if not isinstance(corps, dict):
            corps = {}
        code = corps.get("code")
        message_serveur = corps.get("error") if isinstance(corps.get("error"), str) else None
        logger.error("❌ %s : HTTP %s %s", operation, reponse.status_code, corps or reponse.text[:200])

        if reponse.status_code == 404:
            return RendezvousIntrouvable("Rendez-vous non trouvé")
        if reponse.status_code == 409 and code == "conflict":
            return ConflitRendezvous(
                "Le rendez-vous a été modifié entre-temps, rechargez-le avant de réessayer"
            )
        if reponse.status_code == 409 and code == "invalid_transition":
            return TransitionRefusee(message_serveur or MESSAGES_ERREUR[operation])
        if reponse.status_code in (400, 422):
            details = corps.get("details") if isinstance(corps.get("details"), list) else []
            return ValidationEchouee(
                message_serveur or MESSAGES_ERREUR[operation],
                [d.get("message", "") if isinstance(d, dict) else str(d) for d in details],
            )
        return ErreurReseauOuServeur(MESSAGES_ERREUR[operation])

    def _extraire(self, operation: str, body: Any) -> Dict[str, Any]:
        try:
            element = extraire_rendezvous(body)
        except ValueError as e:
            logger.error("❌ %s : %s", operation, e)
            raise ReponseInvalide(MESSAGE_FORMAT_INVALIDE) from e
        return map_api_data_to_rendezvous(element)

    def _memoriser(self, rdv: Dict[str, Any]) -> Dict[str, Any]:
        for index, existant in enumerate(self.rendezvous):
            if existant.get("id") == rdv.get("id"):
                self.rendezvous[index] = rdv
                return rdv
        self.rendezvous.insert(0, rdv)
        return rdv

    def _mutation(
        self,
        operation: str,
        rdv_id: str,
        methode: str,
        suffixe: str = "",
        json: Any = None,
        version: Optional[int] = None,
    ) -> Dict[str, Any]:
        with self._operation(operation, rdv_id):
            body = self._envoyer(operation, methode, f"{BASE_PATH}/{rdv_id}{suffixe}", json=json, version=version)
            return self._memoriser(self._extraire(operation, body))

    # ----------------------------
    # CRUD
    # ----------------------------
    def fetch_rendezvous(self, statut: Optional[str] = None, type_rdv: Optional[str] = None) -> List[Dict[str, Any]]:
        operation = "fetch_rendezvous"
        with self._operation(operation):
            params = sans_valeurs_vides({"statut": statut, "type": type_rdv})
            body = self._envoyer(operation, "GET", BASE_PATH, params=params or None)
            try:
                elements = extraire_liste(body)
            except ValueError as e:
                logger.error("❌ %s : %s", operation, e)
                raise ReponseInvalide(MESSAGE_FORMAT_INVALIDE) from e
            self.rendezvous = [map_api_data_to_rendezvous(e) for e in elements]
            logger.info("📋 %s rendez-vous chargés", len(self.rendezvous))
            return self.rendezvous

    def create_rendezvous(self, form_data: Dict[str, Any]) -> Dict[str, Any]:
        operation = "create_rendezvous"
        if (form_data.get("type") or "positionnement") == "positionnement":
            resultat = validate_rendezvous_form_data(form_data)
            if not resultat.is_valid:
                raise ValidationEchouee(resultat.errors[0], resultat.errors)

        with self._operation(operation):
            payload = sans_valeurs_vides(prepare_rendezvous_for_api(form_data))
            payload["dateRdv"] = _iso(payload.get("dateRdv"))
            body = self._envoyer(operation, "POST", BASE_PATH, json=sans_valeurs_vides(payload))
            rdv = self._extraire(operation, body)
            logger.info("✅ Rendez-vous créé: %s", rdv.get("id"))
            return self._memoriser(rdv)

    def update_rendezvous(self, rdv_id: str, data: Dict[str, Any], version: Optional[int] = None) -> Dict[str, Any]:
        return self._mutation("update_rendezvous", rdv_id, "PUT", json=_payload_partiel(data), version=version)

    def update_rendezvous_statut(self, rdv_id: str, statut: str, version: Optional[int] = None) -> Dict[str, Any]:
        return self._mutation(
            "update_rendezvous_statut", rdv_id, "PUT", "/statut", json={"statut": statut}, version=version,
        )

    def delete_rendezvous(self, rdv_id: str, version: Optional[int] = None) -> None:
        operation = "delete_rendezvous"
        with self._operation(operation, rdv_id):
            self._envoyer(operation, "DELETE", f"{BASE_PATH}/{rdv_id}", version=version)
            self.rendezvous = [r for r in self.rendezvous if r.get("id") != rdv_id]
            logger.info("🗑️ Rendez-vous supprimé: %s", rdv_id)

    # ----------------------------
    # Cycle de vie
    # ----------------------------
    def valider_rendezvous(
        self,
        rdv_id: str,
        canal: Optional[str] = None,
        date_rdv: Union[str, datetime, None] = None,
        version: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload = sans_valeurs_vides({"formatRdv": canal, "dateRdv": _iso(date_rdv)})
        return self._mutation("valider_rendezvous", rdv_id, "PUT", "/valider", json=payload, version=version)

    def annuler_rendezvous(self, rdv_id: str, raison: Optional[str] = None, version: Optional[int] = None) -> Dict[str, Any]:
        return self._mutation(
            "annuler_rendezvous", rdv_id, "POST", "/annuler", json={"raison": raison}, version=version,
        )

    def reprogrammer_rendezvous(
        self,
        rdv_id: str,
        date_rdv: Union[str, datetime],
        format_rdv: Optional[str] = None,
        version: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload = sans_valeurs_vides({"dateRdv": _iso(date_rdv), "formatRdv": format_rdv})
        return self._mutation(
            "reprogrammer_rendezvous", rdv_id, "POST", "/reprogrammer", json=payload, version=version,
        )

    def editer_compte_rendu(
        self, rdv_id: str, synthese: str, notes: Optional[str] = None, version: Optional[int] = None,
    ) -> Dict[str, Any]:
        return self._mutation(
            "editer_compte_rendu", rdv_id, "PUT", "/compte-rendu",
            json={"synthese": synthese, "notes": notes}, version=version,
        )

    def generer_programme_et_dossier(self, rdv_id: str) -> Dict[str, str]:
        operation = "generer_programme_et_dossier"
        with self._operation(operation, rdv_id):
            body = self._envoyer(operation, "POST", f"{BASE_PATH}/{rdv_id}/generer-programme")
            try:
                element = parser_enveloppe(body).item or {}
            except ValueError:
                element = {}
            if not element.get("programmeId") or not element.get("dossierId"):
                logger.error("❌ %s : réponse inattendue %s", operation, body)
                raise ReponseInvalide(MESSAGE_FORMAT_INCORRECT)
            return {"programmeId": element["programmeId"], "dossierId": element["dossierId"]}

    # ----------------------------
    # Impact
    # ----------------------------
    def planifier_impact(self, parent_id: str, date_impact: Union[str, datetime, None] = None) -> Dict[str, Any]:
        """Crée le rendez-vous d'impact ; sans date, le serveur applique le délai par défaut"""
        payload = sans_valeurs_vides({"dateImpact": _iso(date_impact)})
        return self._mutation("planifier_impact", parent_id, "POST", "/impact/planifier", json=payload)

    def _evaluation(self, data: Dict[str, Any], obligatoire: bool) -> Dict[str, Any]:
        # La note est ramenée sur l'échelle de référence avant validation
        donnees = dict(data)
        echelle = donnees.pop("echelleSatisfaction", None)
        try:
            note = convertir_satisfaction(donnees.get("satisfactionImpact"), echelle)
        except ValueError as e:
            raise ValidationEchouee(str(e), [str(e)])
        if obligatoire or note is not None:
            resultat = validate_impact_evaluation({"satisfactionImpact": note})
            if not resultat.is_valid:
                raise ValidationEchouee(resultat.errors[0], resultat.errors)
        donnees["satisfactionImpact"] = note
        return sans_valeurs_vides({cle: _iso(valeur) for cle, valeur in donnees.items()})

    def completer_evaluation_impact(self, rdv_id: str, data: Dict[str, Any], version: Optional[int] = None) -> Dict[str, Any]:
        payload = self._evaluation(data, obligatoire=True)
        return self._mutation(
            "completer_evaluation_impact", rdv_id, "PUT", "/impact/evaluation", json=payload, version=version,
        )

    def save_impact_evaluation(self, rdv_id: str, data: Dict[str, Any], version: Optional[int] = None) -> Dict[str, Any]:
        payload = self._evaluation(data, obligatoire=False)
        return self._mutation(
            "save_impact_evaluation", rdv_id, "POST", "/impact/evaluation", json=payload, version=version,
        )

    def terminer_impact(self, rdv_id: str, version: Optional[int] = None) -> Dict[str, Any]:
        return self._mutation("terminer_impact", rdv_id, "PUT", "/impact/terminer", version=version)

    def generer_rapport_impact(self, rdv_id: str) -> Dict[str, str]:
        operation = "generer_rapport_impact"
        with self._operation(operation, rdv_id):
            body = self._envoyer(operation, "GET", f"{BASE_PATH}/{rdv_id}/impact/rapport")
            url = _chercher_rapport_url(body)
            if url is None:
                logger.warning("⚠️ Rapport d'impact %s : URL absente, lien par défaut", rdv_id)
                url = settings.RAPPORT_IMPACT_URL_DEFAUT
            return {"rapportUrl": url}

    # ----------------------------
    # Résultats explicites
    # ----------------------------
    def essayer(self, operation: str, *args, **kwargs) -> Union[Ok, Err]:
        """
        Exécute une opération et renvoie Ok(valeur) ou Err(kind, message)
        au lieu de lever l'erreur.
        """
        if operation not in MESSAGES_ERREUR:
            raise ValueError(f"Opération inconnue: {operation}")
        try:
            return Ok(getattr(self, operation)(*args, **kwargs))
        except ErreurClient as e:
            return Err(e.kind, e.message)
