"""
API des rendez-vous : CRUD, cycle de vie, impact, concurrence optimiste
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from gestion_formation_hub.core.config import settings
from gestion_formation_hub.models.base import DossierFormation, ProgrammeFormation, Rendezvous
from gestion_formation_hub.services.rendezvous_workflow import ajouter_mois


def _naive_utc(valeur: str) -> datetime:
    date = datetime.fromisoformat(valeur.replace("Z", "+00:00"))
    if date.tzinfo is not None:
        date = date.astimezone(timezone.utc).replace(tzinfo=None)
    return date


def _planifier_impact(client, parent_id, **payload):
    response = client.post(f"/api/rendezvous/{parent_id}/impact/planifier", json=payload)
    assert response.status_code == 201
    return response.json()["data"]["rendezvous"]


class TestCrud:

    def test_creation(self, client, donnees_positionnement):
        response = client.post("/api/rendezvous", json=donnees_positionnement)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Demande de contact enregistrée avec succès"
        rdv = body["data"]
        assert rdv["status"] == "nouveau"
        assert rdv["type"] == "positionnement"
        assert rdv["nom"] == "Dupont"
        assert rdv["objectifs"] == "Maîtriser les hooks, Tester les composants"
        assert rdv["commentaires"].startswith("Formation: Formation React")
        assert rdv["version"] == 1
        assert rdv["dateContact"] is not None
        assert response.headers["ETag"] == '"1"'

    def test_creation_noms_canoniques(self, client):
        response = client.post("/api/rendezvous", json={
            "nomBeneficiaire": "Martin",
            "prenomBeneficiaire": "Claire",
            "emailBeneficiaire": "claire@example.com",
            "canal": "visio",
        })
        assert response.status_code == 201
        rdv = response.json()["data"]
        assert rdv["nom"] == "Martin"
        assert rdv["formatRdv"] == "visio"

    def test_creation_invalide(self, client):
        response = client.post("/api/rendezvous", json={"nom": "Dupont", "prenom": "Jean", "email": "user@"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "validation_failed"
        assert body["error"] == "L'email du bénéficiaire n'est pas valide"

    def test_liste_et_filtres(self, client, rdv_cree):
        client.post(f"/api/rendezvous/{rdv_cree['id']}/impact/planifier")

        body = client.get("/api/rendezvous").json()
        assert body["total"] == 2

        impacts = client.get("/api/rendezvous", params={"type": "impact"}).json()
        assert impacts["total"] == 1
        assert impacts["data"][0]["rendezvousParentId"] == rdv_cree["id"]

        nouveaux = client.get("/api/rendezvous", params={"statut": "nouveau"}).json()
        assert [r["id"] for r in nouveaux["data"]] == [rdv_cree["id"]]

    def test_filtre_statut_inconnu(self, client):
        response = client.get("/api/rendezvous", params={"statut": "archive"})
        assert response.status_code == 400

    def test_obtenir_inexistant(self, client):
        response = client.get("/api/rendezvous/inconnu")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Rendez-vous non trouvé", "code": "not_found"}

    def test_mise_a_jour(self, client, rdv_cree):
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"entreprise": "ACME", "status": "confirme"})
        assert response.status_code == 200
        rdv = response.json()["data"]
        assert rdv["entreprise"] == "ACME"
        assert rdv["status"] == "confirme"
        assert rdv["version"] == 2

    def test_mise_a_jour_transition_refusee(self, client, rdv_cree):
        client.post(f"/api/rendezvous/{rdv_cree['id']}/annuler")
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"statut": "nouveau"})
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_type_modifiable_sans_impact(self, client, rdv_cree):
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"type": "suivi"})
        assert response.status_code == 200
        assert response.json()["data"]["type"] == "suivi"

    def test_type_parent_fige_par_ses_impacts(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"type": "information"})
        assert response.status_code == 400
        assert response.json()["code"] == "validation_failed"

        parent = client.get(f"/api/rendezvous/{rdv_cree['id']}").json()["data"]
        assert parent["type"] == "positionnement"
        assert parent["version"] == rdv_cree["version"]
        restant = client.get(f"/api/rendezvous/{impact['id']}").json()["data"]
        assert restant["rendezvousParentId"] == rdv_cree["id"]

    def test_type_impact_non_modifiable(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.put(f"/api/rendezvous/{impact['id']}", json={"type": "positionnement"})
        assert response.status_code == 400

        response = client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"type": "impact"})
        assert response.status_code == 400

    def test_suppression_detache_les_impacts(self, client, session, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        client.post(f"/api/rendezvous/{rdv_cree['id']}/generer-programme")

        response = client.delete(f"/api/rendezvous/{rdv_cree['id']}")
        assert response.status_code == 200
        assert response.json()["message"] == "Rendez-vous supprimé avec succès"

        assert client.get(f"/api/rendezvous/{rdv_cree['id']}").status_code == 404
        restant = client.get(f"/api/rendezvous/{impact['id']}").json()["data"]
        assert restant["rendezvousParentId"] is None
        assert session.exec(select(DossierFormation)).all() == []
        programme = session.exec(select(ProgrammeFormation)).one()
        assert programme.rendezvous_id is None

    def test_statistiques(self, client, rdv_cree):
        client.put(f"/api/rendezvous/{rdv_cree['id']}/statut", json={"statut": "rdv_planifie"})
        client.put(f"/api/rendezvous/{rdv_cree['id']}/statut", json={"statut": "termine"})
        stats = client.get("/api/rendezvous/statistiques").json()["data"]
        assert stats["total"] == 1
        assert stats["parStatut"]["termine"] == 1
        assert stats["parType"]["positionnement"] == 1
        assert stats["tauxRealisation"] == 100
        assert stats["satisfactionMoyenne"] is None


class TestCycleDeVie:

    def test_valider(self, client, rdv_cree):
        response = client.put(
            f"/api/rendezvous/{rdv_cree['id']}/valider",
            json={"formatRdv": "visio", "dateRdv": "2024-12-15T10:00:00"},
        )
        assert response.status_code == 200
        rdv = response.json()["data"]
        assert rdv["status"] == "rdv_planifie"
        assert rdv["formatRdv"] == "visio"
        assert rdv["dateRdv"].startswith("2024-12-15T10:00:00")

    def test_valider_sans_corps(self, client, rdv_cree):
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}/valider")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rdv_planifie"

    def test_valider_annule_refuse(self, client, rdv_cree):
        client.post(f"/api/rendezvous/{rdv_cree['id']}/annuler", json={"raison": "Conflit d'horaire"})
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}/valider")
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_annuler(self, client, rdv_cree):
        response = client.post(f"/api/rendezvous/{rdv_cree['id']}/annuler", json={"raison": "Conflit d'horaire"})
        rdv = response.json()["data"]
        assert rdv["status"] == "annule"
        assert rdv["raisonAnnulation"] == "Conflit d'horaire"

    def test_reprogrammer(self, client, rdv_cree):
        response = client.post(
            f"/api/rendezvous/{rdv_cree['id']}/reprogrammer",
            json={"dateRdv": "2024-12-20T14:00:00", "formatRdv": "presentiel"},
        )
        rdv = response.json()["data"]
        assert rdv["dateRdv"].startswith("2024-12-20T14:00:00")
        assert rdv["formatRdv"] == "presentiel"
        assert rdv["status"] == "nouveau"

    def test_reprogrammer_annule_refuse(self, client, rdv_cree):
        client.post(f"/api/rendezvous/{rdv_cree['id']}/annuler")
        response = client.post(
            f"/api/rendezvous/{rdv_cree['id']}/reprogrammer", json={"dateRdv": "2024-12-20T14:00:00"}
        )
        assert response.status_code == 409

    def test_reprogrammer_sans_date(self, client, rdv_cree):
        response = client.post(f"/api/rendezvous/{rdv_cree['id']}/reprogrammer", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "Données invalides"

    def test_statut_obligatoire(self, client, rdv_cree):
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}/statut", json={})
        assert response.status_code == 400
        assert client.get(f"/api/rendezvous/{rdv_cree['id']}").json()["data"]["status"] == "nouveau"

    def test_dates_sans_fuseau_lues_en_utc(self, client, rdv_cree):
        url = f"/api/rendezvous/{rdv_cree['id']}"
        valide = client.put(f"{url}/valider", json={"dateRdv": "2024-12-15T10:00:00"})
        assert valide.status_code == 200
        assert _naive_utc(valide.json()["data"]["dateRdv"]) == datetime(2024, 12, 15, 10, 0)

        modifie = client.put(url, json={"dateRdv": "2024-12-16T09:30:00", "dateContact": "2024-12-01T08:00:00"})
        assert modifie.status_code == 200
        assert _naive_utc(modifie.json()["data"]["dateContact"]) == datetime(2024, 12, 1, 8, 0)

    def test_reprogrammer_date_avec_decalage(self, client, rdv_cree):
        response = client.post(
            f"/api/rendezvous/{rdv_cree['id']}/reprogrammer", json={"dateRdv": "2024-12-20T16:00:00+02:00"}
        )
        assert response.status_code == 200
        assert _naive_utc(response.json()["data"]["dateRdv"]) == datetime(2024, 12, 20, 14, 0)

    def test_compte_rendu_sur_termine_selon_politique(self, client, rdv_cree, monkeypatch):
        rdv_id = rdv_cree["id"]
        client.put(f"/api/rendezvous/{rdv_id}/statut", json={"statut": "rdv_planifie"})
        client.put(f"/api/rendezvous/{rdv_id}/statut", json={"statut": "termine"})

        monkeypatch.setattr(settings, "ALLOW_MUTATION_AFTER_TERMINAL", True)
        response = client.put(f"/api/rendezvous/{rdv_id}/compte-rendu", json={"synthese": "Bilan positif"})
        assert response.status_code == 200
        assert response.json()["data"]["synthese"] == "Bilan positif"
        assert response.json()["data"]["status"] == "termine"

        monkeypatch.setattr(settings, "ALLOW_MUTATION_AFTER_TERMINAL", False)
        response = client.put(f"/api/rendezvous/{rdv_id}/compte-rendu", json={"synthese": "Autre"})
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_changer_statut_alias(self, client, rdv_cree):
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}/statut", json={"status": "planifie"})
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rdv_planifie"

    def test_documents_html(self, client, rdv_cree):
        client.put(
            f"/api/rendezvous/{rdv_cree['id']}/compte-rendu",
            json={"synthese": "Synthèse détaillée", "notes": "Notes"},
        )
        response = client.get(f"/api/rendezvous/{rdv_cree['id']}/compte-rendu/document")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Synthèse détaillée" in response.text
        assert "Dupont" in response.text

    def test_generer_programme(self, client, session, rdv_cree):
        response = client.post(f"/api/rendezvous/{rdv_cree['id']}/generer-programme")
        assert response.status_code == 200
        data = response.json()["data"]
        programme = session.get(ProgrammeFormation, data["programmeId"])
        dossier = session.get(DossierFormation, data["dossierId"])
        assert programme.type.value == "personnalise"
        assert programme.titre == "Formation React"
        assert programme.objectifs == ["Maîtriser les hooks", "Tester les composants"]
        assert programme.est_visible is False
        assert dossier.programme_id == programme.id
        assert dossier.rendezvous_id == rdv_cree["id"]

    def test_generer_programme_deux_fois(self, client, session, rdv_cree):
        url = f"/api/rendezvous/{rdv_cree['id']}/generer-programme"
        premier = client.post(url)
        second = client.post(url)
        assert premier.status_code == 200
        assert second.status_code == 200

        codes = [p.code for p in session.exec(select(ProgrammeFormation)).all()]
        assert len(codes) == 2
        assert len(set(codes)) == 2
        assert sorted(codes)[1] == f"{sorted(codes)[0]}-2"


class TestImpact:

    def test_planifier_sans_date(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        assert impact["type"] == "impact"
        assert impact["status"] == "impact"
        assert impact["rendezvousParentId"] == rdv_cree["id"]
        assert impact["nom"] == "Dupont"
        assert impact["email"] == "jean.dupont@example.com"

        attendu = ajouter_mois(datetime.now(timezone.utc), settings.IMPACT_DELAI_MOIS).replace(tzinfo=None)
        assert abs(_naive_utc(impact["dateImpact"]) - attendu) < timedelta(minutes=5)

    def test_planifier_avec_date(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"], dateImpact="2025-06-15T10:00:00")
        assert impact["dateImpact"].startswith("2025-06-15T10:00:00")

    def test_evaluation_date_sans_fuseau(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.post(f"/api/rendezvous/{impact['id']}/impact/evaluation", json={
            "dateImpact": "2025-07-01T09:00:00",
        })
        assert response.status_code == 200
        assert _naive_utc(response.json()["data"]["dateImpact"]) == datetime(2025, 7, 1, 9, 0)

    @pytest.mark.parametrize("echelle", [0, -5])
    @pytest.mark.parametrize("methode", ["put", "post"])
    def test_echelle_satisfaction_non_positive(self, client, rdv_cree, echelle, methode):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = getattr(client, methode)(
            f"/api/rendezvous/{impact['id']}/impact/evaluation",
            json={"satisfactionImpact": 3, "echelleSatisfaction": echelle},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Données invalides"
        assert client.get(f"/api/rendezvous/{impact['id']}").json()["data"]["status"] == "impact"

    def test_parent_non_positionnement(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.post(f"/api/rendezvous/{impact['id']}/impact/planifier")
        assert response.status_code == 400

    def test_completer_evaluation(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.put(f"/api/rendezvous/{impact['id']}/impact/evaluation", json={
            "satisfactionImpact": 8,
            "competencesAppliquees": "React hooks",
            "commentairesImpact": "Formation très satisfaisante",
        })
        assert response.status_code == 200
        rdv = response.json()["data"]
        assert rdv["status"] == "impact_complete"
        assert rdv["satisfactionImpact"] == 8
        assert rdv["competencesAppliquees"] == "React hooks"

    def test_completer_evaluation_echelle_5(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.put(
            f"/api/rendezvous/{impact['id']}/impact/evaluation",
            json={"satisfactionImpact": 4, "echelleSatisfaction": 5},
        )
        assert response.json()["data"]["satisfactionImpact"] == 8

    def test_completer_evaluation_hors_bornes(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.put(f"/api/rendezvous/{impact['id']}/impact/evaluation", json={"satisfactionImpact": 0})
        assert response.status_code == 400
        assert response.json()["code"] == "validation_failed"

    def test_completer_evaluation_sans_satisfaction(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.put(f"/api/rendezvous/{impact['id']}/impact/evaluation", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "La satisfaction est obligatoire"

    def test_evaluation_sur_positionnement(self, client, rdv_cree):
        response = client.put(
            f"/api/rendezvous/{rdv_cree['id']}/impact/evaluation", json={"satisfactionImpact": 8}
        )
        assert response.status_code == 400

    def test_brouillon_puis_completion(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        url = f"/api/rendezvous/{impact['id']}/impact/evaluation"

        brouillon = client.post(url, json={"competencesAppliquees": "Tests unitaires"}).json()["data"]
        assert brouillon["status"] == "impact"
        assert brouillon["competencesAppliquees"] == "Tests unitaires"

        complet = client.post(url, json={"satisfactionImpact": 9}).json()["data"]
        assert complet["status"] == "impact_complete"
        assert complet["competencesAppliquees"] == "Tests unitaires"

    def test_brouillon_hors_bornes(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.post(f"/api/rendezvous/{impact['id']}/impact/evaluation", json={"satisfactionImpact": 12})
        assert response.status_code == 400

    def test_terminer(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        response = client.put(f"/api/rendezvous/{impact['id']}/impact/terminer")
        assert response.json()["data"]["status"] == "impact_termine"

        response = client.put(f"/api/rendezvous/{impact['id']}/impact/evaluation", json={"satisfactionImpact": 8})
        assert response.status_code == 409

    def test_rapport(self, client, rdv_cree):
        impact = _planifier_impact(client, rdv_cree["id"])
        client.put(f"/api/rendezvous/{impact['id']}/impact/evaluation", json={
            "satisfactionImpact": 7, "commentairesImpact": "Très utile au quotidien",
        })

        rapport = client.get(f"/api/rendezvous/{impact['id']}/impact/rapport").json()
        assert rapport == {"rapportUrl": f"/api/rendezvous/{impact['id']}/impact/rapport/document"}

        document = client.get(rapport["rapportUrl"])
        assert document.status_code == 200
        assert "Très utile au quotidien" in document.text


class TestConcurrence:

    def test_if_match_conforme(self, client, rdv_cree):
        response = client.put(
            f"/api/rendezvous/{rdv_cree['id']}/statut",
            json={"statut": "confirme"},
            headers={"If-Match": '"1"'},
        )
        assert response.status_code == 200
        assert response.headers["ETag"] == '"2"'

    def test_if_match_perime(self, client, rdv_cree):
        client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"entreprise": "ACME"})
        response = client.put(
            f"/api/rendezvous/{rdv_cree['id']}",
            json={"entreprise": "Autre"},
            headers={"If-Match": "1"},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "conflict"
        assert body["details"] == [{"version": 2}]
        assert client.get(f"/api/rendezvous/{rdv_cree['id']}").json()["data"]["entreprise"] == "ACME"

    def test_if_match_faible_et_joker(self, client, rdv_cree):
        response = client.post(
            f"/api/rendezvous/{rdv_cree['id']}/annuler", json={}, headers={"If-Match": 'W/"1"'}
        )
        assert response.status_code == 200
        response = client.put(
            f"/api/rendezvous/{rdv_cree['id']}/compte-rendu", json={"synthese": "ok"}, headers={"If-Match": "*"}
        )
        assert response.status_code == 200

    def test_if_match_invalide(self, client, rdv_cree):
        response = client.delete(f"/api/rendezvous/{rdv_cree['id']}", headers={"If-Match": "abc"})
        assert response.status_code == 400

    def test_sans_if_match_derniere_ecriture(self, client, rdv_cree):
        client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"entreprise": "A"})
        response = client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"entreprise": "B"})
        assert response.json()["data"]["entreprise"] == "B"
        assert response.json()["data"]["version"] == 3

    def test_suppression_version_perimee(self, client, session, rdv_cree):
        client.put(f"/api/rendezvous/{rdv_cree['id']}", json={"entreprise": "ACME"})
        response = client.delete(f"/api/rendezvous/{rdv_cree['id']}", headers={"If-Match": '"1"'})
        assert response.status_code == 409
        assert session.get(Rendezvous, rdv_cree["id"]) is not None
