"""
Client HTTP des rendez-vous : messages d'erreur par opération, formes de
réponse tolérées, garde anti double envoi, scénarios de bout en bout
"""
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from gestion_formation_hub.client import (
    ConflitRendezvous,
    Err,
    ErreurReseauOuServeur,
    Ok,
    OperationEnCours,
    RendezvousClient,
    RendezvousIntrouvable,
    ReponseInvalide,
    TransitionRefusee,
    ValidationEchouee,
)
from gestion_formation_hub.core.config import settings
from gestion_formation_hub.services.rendezvous_workflow import ajouter_mois

RDV_API = {
    "id": "rdv-001",
    "type": "positionnement",
    "status": "nouveau",
    "nom": "Dupont",
    "prenom": "Jean",
    "email": "jean.dupont@example.com",
    "telephone": "0123456789",
    "formationTitre": "Formation React",
    "objectifs": "Maîtriser React",
    "formatRdv": "visio",
    "version": 1,
}


def _client_simule(reponses, requetes=None):
    """Client dont le transport renvoie les réponses données, dans l'ordre"""
    file = list(reponses)

    def handler(request: httpx.Request) -> httpx.Response:
        if requetes is not None:
            requetes.append(request)
        reponse = file.pop(0) if len(file) > 1 else file[0]
        if isinstance(reponse, Exception):
            raise reponse
        if isinstance(reponse, httpx.Response):
            return reponse
        return httpx.Response(200, json=reponse)

    http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://test")
    return RendezvousClient(http=http)


def _corps(request: httpx.Request):
    return json.loads(request.content) if request.content else None


class TestLecture:

    def test_fetch_enveloppe_data(self):
        requetes = []
        client = _client_simule([{"success": True, "data": [RDV_API], "total": 1}], requetes)
        rendezvous = client.fetch_rendezvous()
        assert len(rendezvous) == 1
        assert rendezvous[0]["nomBeneficiaire"] == "Dupont"
        assert rendezvous[0]["canal"] == "visio"
        assert rendezvous[0]["objectifs"] == ["Maîtriser React"]
        assert client.rendezvous == rendezvous
        assert requetes[0].url.path == "/api/rendezvous"

    def test_fetch_filtres(self):
        requetes = []
        client = _client_simule([[RDV_API]], requetes)
        client.fetch_rendezvous(statut="nouveau", type_rdv="positionnement")
        assert requetes[0].url.params["statut"] == "nouveau"
        assert requetes[0].url.params["type"] == "positionnement"

    def test_fetch_sans_filtre(self):
        requetes = []
        client = _client_simule([{"data": []}], requetes)
        assert client.fetch_rendezvous() == []
        assert not requetes[0].url.params

    def test_fetch_data_imbrique(self):
        client = _client_simule([{"data": {"data": [RDV_API]}}])
        assert client.fetch_rendezvous()[0]["id"] == "rdv-001"

    def test_fetch_erreur_reseau(self):
        client = _client_simule([httpx.ConnectError("Network error")])
        with pytest.raises(ErreurReseauOuServeur) as exc:
            client.fetch_rendezvous()
        assert exc.value.message == "Impossible de charger les rendez-vous"
        assert exc.value.kind == "network_or_server_error"

    def test_fetch_format_invalide(self):
        client = _client_simule([{"data": "invalid format"}])
        with pytest.raises(ReponseInvalide) as exc:
            client.fetch_rendezvous()
        assert str(exc.value) == "Format de réponse invalide"

    def test_echec_sans_effet_sur_la_liste(self):
        client = _client_simule([{"data": [RDV_API]}, httpx.Response(500, json={"success": False})])
        client.fetch_rendezvous()
        with pytest.raises(ErreurReseauOuServeur):
            client.fetch_rendezvous()
        assert [r["id"] for r in client.rendezvous] == ["rdv-001"]


class TestCreation:

    def test_creation(self, formulaire_positionnement):
        requetes = []
        client = _client_simule([{"success": True, "data": RDV_API}], requetes)
        rdv = client.create_rendezvous(formulaire_positionnement)
        assert rdv["id"] == "rdv-001"

        envoye = _corps(requetes[0])
        assert envoye["type"] == "positionnement"
        assert envoye["nom"] == "Martin"
        assert envoye["email"] == "claire.martin@example.com"
        assert envoye["objectifs"] == "Découvrir Angular, Créer une application"
        assert "nomBeneficiaire" not in envoye
        assert None not in envoye.values()

    def test_validation_locale_sans_requete(self, formulaire_positionnement):
        requetes = []
        client = _client_simule([{"data": RDV_API}], requetes)
        formulaire_positionnement["emailBeneficiaire"] = "user@"
        with pytest.raises(ValidationEchouee) as exc:
            client.create_rendezvous(formulaire_positionnement)
        assert exc.value.message == "L'email du bénéficiaire n'est pas valide"
        assert requetes == []

    def test_erreur_serveur(self, formulaire_positionnement):
        client = _client_simule([httpx.Response(500, text="boom")])
        with pytest.raises(ErreurReseauOuServeur, match="Impossible de créer le rendez-vous"):
            client.create_rendezvous(formulaire_positionnement)

    def test_forme_inattendue(self, formulaire_positionnement):
        client = _client_simule([{"data": "unexpected format"}])
        with pytest.raises(ReponseInvalide, match="Format de réponse invalide"):
            client.create_rendezvous(formulaire_positionnement)

    def test_reponse_tableau(self, formulaire_positionnement):
        client = _client_simule([{"data": [RDV_API]}])
        assert client.create_rendezvous(formulaire_positionnement)["id"] == "rdv-001"


class TestMutations:

    @pytest.mark.parametrize("operation,args,message", [
        ("update_rendezvous", ("rdv-001", {}), "Impossible de mettre à jour le rendez-vous"),
        ("update_rendezvous_statut", ("rdv-001", "termine"), "Impossible de mettre à jour le statut du rendez-vous"),
        ("delete_rendezvous", ("rdv-001",), "Impossible de supprimer le rendez-vous"),
        ("valider_rendezvous", ("rdv-001",), "Impossible de valider le rendez-vous"),
        ("annuler_rendezvous", ("rdv-001",), "Impossible d'annuler le rendez-vous"),
        ("reprogrammer_rendezvous", ("rdv-001", "2024-12-20T14:00:00"), "Impossible de reprogrammer le rendez-vous"),
        ("planifier_impact", ("rdv-001",), "Impossible de planifier le rendez-vous d'impact"),
        ("completer_evaluation_impact", ("rdv-001", {"satisfactionImpact": 8}),
         "Impossible de compléter l'évaluation d'impact"),
        ("save_impact_evaluation", ("rdv-001", {}), "Impossible d'enregistrer l'évaluation d'impact"),
        ("terminer_impact", ("rdv-001",), "Impossible de terminer le rendez-vous d'impact"),
        ("generer_rapport_impact", ("rdv-001",), "Impossible de générer le rapport d'impact"),
        ("editer_compte_rendu", ("rdv-001", "Synthèse"), "Impossible de mettre à jour le compte rendu"),
        ("generer_programme_et_dossier", ("rdv-001",), "Impossible de générer le programme et le dossier"),
    ])
    def test_message_par_operation(self, operation, args, message):
        client = _client_simule([httpx.ConnectError("boom")])
        with pytest.raises(ErreurReseauOuServeur) as exc:
            getattr(client, operation)(*args)
        assert exc.value.message == message

    def test_valider(self):
        requetes = []
        valide = {**RDV_API, "status": "rdv_planifie", "dateRdv": "2024-12-15T10:00:00"}
        client = _client_simule([{"success": True, "data": valide}], requetes)
        rdv = client.valider_rendezvous("rdv-001", "visio", "2024-12-15T10:00:00")
        assert rdv["statut"] == "rdv_planifie"
        assert requetes[0].method == "PUT"
        assert requetes[0].url.path == "/api/rendezvous/rdv-001/valider"
        assert _corps(requetes[0]) == {"formatRdv": "visio", "dateRdv": "2024-12-15T10:00:00"}

    def test_valider_sans_parametres(self):
        requetes = []
        client = _client_simule([{"data": [{**RDV_API, "status": "rdv_planifie"}]}], requetes)
        assert client.valider_rendezvous("rdv-001")["statut"] == "rdv_planifie"
        assert _corps(requetes[0]) == {}

    def test_valider_forme_inattendue(self):
        client = _client_simule([{"data": "unexpected format"}])
        with pytest.raises(ReponseInvalide, match="Format de réponse invalide"):
            client.valider_rendezvous("rdv-001")

    def test_if_match_transmis(self):
        requetes = []
        client = _client_simule([{"data": RDV_API}], requetes)
        client.update_rendezvous_statut("rdv-001", "confirme", version=3)
        assert requetes[0].headers["If-Match"] == '"3"'

    def test_mise_a_jour_noms_legacy(self):
        requetes = []
        client = _client_simule([{"data": RDV_API}], requetes)
        client.update_rendezvous("rdv-001", {"nomBeneficiaire": "Durand", "objectifs": ["a", "b"]})
        assert _corps(requetes[0]) == {"nom": "Durand", "objectifs": "a, b"}

    def test_annuler_sans_raison(self):
        requetes = []
        client = _client_simule([{"data": [{**RDV_API, "status": "annule"}]}], requetes)
        assert client.annuler_rendezvous("rdv-001")["statut"] == "annule"
        assert _corps(requetes[0]) == {"raison": None}

    def test_compte_rendu(self):
        requetes = []
        client = _client_simule([{"data": {**RDV_API, "synthese": "Synthèse simple"}}], requetes)
        assert client.editer_compte_rendu("rdv-001", "Synthèse simple")["synthese"] == "Synthèse simple"
        assert _corps(requetes[0]) == {"synthese": "Synthèse simple", "notes": None}

    def test_suppression_retire_de_la_liste(self):
        client = _client_simule([{"data": [RDV_API]}, httpx.Response(200, json={"success": True})])
        client.fetch_rendezvous()
        client.delete_rendezvous("rdv-001")
        assert client.rendezvous == []

    def test_introuvable(self):
        client = _client_simule([httpx.Response(404, json={"success": False, "code": "not_found"})])
        with pytest.raises(RendezvousIntrouvable):
            client.terminer_impact("inconnu")

    def test_conflit_de_version(self):
        client = _client_simule([httpx.Response(409, json={"success": False, "code": "conflict"})])
        with pytest.raises(ConflitRendezvous) as exc:
            client.update_rendezvous("rdv-001", {"entreprise": "ACME"}, version=1)
        assert exc.value.kind == "conflict"

    def test_transition_refusee(self):
        corps = {"success": False, "code": "invalid_transition", "error": "Un rendez-vous annulé ne peut pas être validé"}
        client = _client_simule([httpx.Response(409, json=corps)])
        with pytest.raises(TransitionRefusee, match="annulé ne peut pas être validé"):
            client.valider_rendezvous("rdv-001")


class TestImpact:

    def test_planifier_reponse_rendezvous(self):
        impact = {**RDV_API, "id": "impact-1", "type": "impact", "status": "impact", "rendezvousParentId": "rdv-001"}
        client = _client_simule([{"success": True, "data": {"rendezvous": impact}}])
        rdv = client.planifier_impact("rdv-001")
        assert rdv["id"] == "impact-1"
        assert rdv["rendezvousParentId"] == "rdv-001"

    def test_planifier_sans_date_corps_vide(self):
        requetes = []
        client = _client_simule([{"data": {"rendezvous": RDV_API}}], requetes)
        client.planifier_impact("rdv-001")
        assert _corps(requetes[0]) == {}

    def test_completer_validation_locale(self):
        requetes = []
        client = _client_simule([{"data": RDV_API}], requetes)
        with pytest.raises(ValidationEchouee, match="La satisfaction est obligatoire"):
            client.completer_evaluation_impact("rdv-001", {"commentairesImpact": "RAS"})
        with pytest.raises(ValidationEchouee):
            client.completer_evaluation_impact("rdv-001", {"satisfactionImpact": 0})
        assert requetes == []

    def test_completer_conversion_echelle(self):
        requetes = []
        client = _client_simule([{"data": RDV_API}], requetes)
        client.completer_evaluation_impact("rdv-001", {"satisfactionImpact": 4, "echelleSatisfaction": 5})
        assert _corps(requetes[0]) == {"satisfactionImpact": 8}

    @pytest.mark.parametrize("echelle", [0, -5])
    def test_echelle_non_positive_refusee(self, echelle):
        requetes = []
        client = _client_simule([{"data": RDV_API}], requetes)
        with pytest.raises(ValidationEchouee, match="L'échelle de satisfaction doit être un entier positif"):
            client.completer_evaluation_impact("rdv-001", {"satisfactionImpact": 3, "echelleSatisfaction": echelle})
        resultat = client.essayer("save_impact_evaluation", "rdv-001", {"satisfactionImpact": 3, "echelleSatisfaction": echelle})
        assert isinstance(resultat, Err)
        assert resultat.kind == "validation_failed"
        assert requetes == []

    def test_brouillon_sans_satisfaction(self):
        requetes = []
        client = _client_simule([{"data": RDV_API}], requetes)
        client.save_impact_evaluation("rdv-001", {"competencesAppliquees": "React"})
        assert requetes[0].method == "POST"
        assert _corps(requetes[0]) == {"competencesAppliquees": "React"}

    @pytest.mark.parametrize("body,attendu", [
        ({"rapportUrl": "/api/rapports/impact-rdv-001.pdf"}, "/api/rapports/impact-rdv-001.pdf"),
        ({"message": {"rapportUrl": "/api/rapports/nested-report.pdf"}}, "/api/rapports/nested-report.pdf"),
        ({"data": {"rapportUrl": "/api/rapports/data.pdf"}}, "/api/rapports/data.pdf"),
        ({"unexpected": "format"}, "/api/rapports/default.pdf"),
    ])
    def test_rapport(self, body, attendu):
        client = _client_simule([body])
        assert client.generer_rapport_impact("rdv-impact-001") == {"rapportUrl": attendu}

    def test_programme_et_dossier(self):
        client = _client_simule([{"data": {"programmeId": "prog-001", "dossierId": "doss-001"}}])
        assert client.generer_programme_et_dossier("rdv-001") == {"programmeId": "prog-001", "dossierId": "doss-001"}

    def test_programme_format_incorrect(self):
        client = _client_simule([{"data": {"incorrectFormat": True}}])
        with pytest.raises(ReponseInvalide, match="Format de réponse incorrect"):
            client.generer_programme_et_dossier("rdv-001")


class TestOperationEnCours:

    def test_seconde_invocation_refusee(self):
        requetes = []
        reentrees = []
        client = None

        def handler(request: httpx.Request) -> httpx.Response:
            requetes.append(request)
            # Nouveau clic pendant que la première requête est en vol
            try:
                client.valider_rendezvous("rdv-001")
            except OperationEnCours as e:
                reentrees.append(e)
            return httpx.Response(200, json={"data": {**RDV_API, "status": "rdv_planifie"}})

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://test")
        client = RendezvousClient(http=http)
        client.valider_rendezvous("rdv-001")

        assert len(requetes) == 1
        assert len(reentrees) == 1
        assert reentrees[0].kind == "operation_pending"

    def test_autre_identifiant_autorise(self):
        requetes = []
        client = None

        def handler(request: httpx.Request) -> httpx.Response:
            requetes.append(request)
            if request.url.path.endswith("rdv-001/valider"):
                client.valider_rendezvous("rdv-002")
            return httpx.Response(200, json={"data": RDV_API})

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://test")
        client = RendezvousClient(http=http)
        client.valider_rendezvous("rdv-001")
        assert len(requetes) == 2

    def test_garde_liberee_apres_echec(self):
        client = _client_simule([httpx.ConnectError("boom"), {"data": RDV_API}])
        with pytest.raises(ErreurReseauOuServeur):
            client.terminer_impact("rdv-001")
        assert client.terminer_impact("rdv-001")["id"] == "rdv-001"


class TestResultats:

    def test_ok(self):
        client = _client_simule([{"data": [RDV_API]}])
        resultat = client.essayer("fetch_rendezvous")
        assert isinstance(resultat, Ok)
        assert resultat.ok
        assert resultat.valeur[0]["id"] == "rdv-001"

    def test_err(self):
        client = _client_simule([httpx.ConnectError("boom")])
        resultat = client.essayer("annuler_rendezvous", "rdv-001", raison="Conflit")
        assert resultat == Err("network_or_server_error", "Impossible d'annuler le rendez-vous")
        assert not resultat.ok

    def test_operation_inconnue(self):
        client = _client_simule([{}])
        with pytest.raises(ValueError):
            client.essayer("close")


class TestScenarios:
    """Le client branché directement sur l'application"""

    def test_creer_puis_valider(self, client, formulaire_positionnement):
        rdv_client = RendezvousClient(http=client)
        rdv = rdv_client.create_rendezvous(formulaire_positionnement)
        assert rdv["statut"] == "nouveau"
        assert rdv["nomBeneficiaire"] == "Martin"
        assert rdv["objectifs"] == ["Découvrir Angular, Créer une application"]

        valide = rdv_client.valider_rendezvous(rdv["id"], "visio", "2024-12-15T10:00:00")
        assert valide["statut"] == "rdv_planifie"
        assert valide["canal"] == "visio"

    def test_chaine_impact(self, client, formulaire_positionnement):
        rdv_client = RendezvousClient(http=client)
        parent = rdv_client.create_rendezvous(formulaire_positionnement)

        impact = rdv_client.planifier_impact(parent["id"])
        assert impact["rendezvousParentId"] == parent["id"]
        assert impact["type"] == "impact"

        date_impact = datetime.fromisoformat(impact["dateImpact"].replace("Z", "+00:00"))
        if date_impact.tzinfo is not None:
            date_impact = date_impact.astimezone(timezone.utc).replace(tzinfo=None)
        attendu = ajouter_mois(datetime.now(timezone.utc), settings.IMPACT_DELAI_MOIS).replace(tzinfo=None)
        assert abs(date_impact - attendu) < timedelta(minutes=5)

        complete = rdv_client.completer_evaluation_impact(
            impact["id"], {"satisfactionImpact": 5, "echelleSatisfaction": 5}, version=impact["version"],
        )
        assert complete["statut"] == "impact_complete"
        assert complete["satisfactionImpact"] == 10

        termine = rdv_client.terminer_impact(impact["id"])
        assert termine["statut"] == "impact_termine"

        rapport = rdv_client.generer_rapport_impact(impact["id"])
        assert rapport["rapportUrl"].endswith(f"/{impact['id']}/impact/rapport/document")

    def test_conflit_detecte(self, client, formulaire_positionnement):
        rdv_client = RendezvousClient(http=client)
        rdv = rdv_client.create_rendezvous(formulaire_positionnement)
        rdv_client.update_rendezvous(rdv["id"], {"entreprise": "ACME"}, version=rdv["version"])

        resultat = rdv_client.essayer("update_rendezvous", rdv["id"], {"entreprise": "Autre"}, version=rdv["version"])
        assert resultat == Err("conflict", "Le rendez-vous a été modifié entre-temps, rechargez-le avant de réessayer")

    def test_introuvable(self, client):
        rdv_client = RendezvousClient(http=client)
        resultat = rdv_client.essayer("terminer_impact", "inconnu")
        assert resultat.kind == "not_found"

    def test_programme_et_dossier(self, client, formulaire_positionnement):
        rdv_client = RendezvousClient(http=client)
        rdv = rdv_client.create_rendezvous(formulaire_positionnement)
        resultat = rdv_client.generer_programme_et_dossier(rdv["id"])
        assert set(resultat) == {"programmeId", "dossierId"}
