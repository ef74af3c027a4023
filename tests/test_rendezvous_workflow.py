"""
Machine à états des rendez-vous et politique sur les statuts terminaux
"""
from datetime import datetime, timezone

import pytest

from gestion_formation_hub.core.config import settings
from gestion_formation_hub.core.exceptions import DonneesInvalides, TransitionInvalide
from gestion_formation_hub.models.enums import StatutRDV, TypeRDV
from gestion_formation_hub.services import rendezvous_workflow as workflow


class TestTransitions:

    @pytest.mark.parametrize("actuel,cible", [
        (StatutRDV.NOUVEAU, StatutRDV.RDV_PLANIFIE),
        (StatutRDV.NOUVEAU, StatutRDV.ANNULE),
        (StatutRDV.RDV_PLANIFIE, StatutRDV.TERMINE),
        (StatutRDV.CONFIRME, StatutRDV.EN_COURS),
        (StatutRDV.REPORTE, StatutRDV.RDV_PLANIFIE),
        (StatutRDV.IMPACT, StatutRDV.IMPACT_COMPLETE),
        (StatutRDV.IMPACT_COMPLETE, StatutRDV.IMPACT_TERMINE),
    ])
    def test_transitions_permises(self, actuel, cible):
        workflow.verifier_transition(actuel, cible)

    @pytest.mark.parametrize("actuel,cible", [
        (StatutRDV.TERMINE, StatutRDV.NOUVEAU),
        (StatutRDV.ANNULE, StatutRDV.RDV_PLANIFIE),
        (StatutRDV.IMPACT_TERMINE, StatutRDV.IMPACT),
        (StatutRDV.NOUVEAU, StatutRDV.IMPACT_COMPLETE),
        (StatutRDV.EN_COURS, StatutRDV.NOUVEAU),
    ])
    def test_transitions_refusees(self, actuel, cible):
        with pytest.raises(TransitionInvalide):
            workflow.verifier_transition(actuel, cible)

    def test_meme_statut_sans_effet(self):
        workflow.verifier_transition(StatutRDV.TERMINE, StatutRDV.TERMINE)

    def test_statuts_terminaux_sans_sortie(self):
        for statut in workflow.STATUTS_TERMINAUX:
            assert workflow.TRANSITIONS[statut] == frozenset()
            assert workflow.est_terminal(statut)

    def test_tous_les_statuts_declares(self):
        assert set(workflow.TRANSITIONS) == set(StatutRDV)


class TestStatuts:

    def test_alias_planifie(self):
        assert workflow.parse_statut("planifie") == StatutRDV.RDV_PLANIFIE

    def test_statut_inconnu(self):
        with pytest.raises(DonneesInvalides):
            workflow.parse_statut("archive")


class TestGardes:

    def test_validation_refusee_si_annule(self):
        with pytest.raises(TransitionInvalide):
            workflow.verifier_validation(StatutRDV.ANNULE)

    def test_validation_depuis_termine(self):
        workflow.verifier_validation(StatutRDV.TERMINE)

    def test_reprogrammation_annule_toujours_refusee(self, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_MUTATION_AFTER_TERMINAL", True)
        with pytest.raises(TransitionInvalide):
            workflow.verifier_reprogrammation(StatutRDV.ANNULE)

    def test_mutation_terminale_autorisee_par_defaut(self, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_MUTATION_AFTER_TERMINAL", True)
        workflow.verifier_mutation_terminale(StatutRDV.TERMINE, "compte rendu")
        workflow.verifier_reprogrammation(StatutRDV.TERMINE)

    def test_mutation_terminale_interdite(self, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_MUTATION_AFTER_TERMINAL", False)
        with pytest.raises(TransitionInvalide):
            workflow.verifier_mutation_terminale(StatutRDV.IMPACT_TERMINE, "compte rendu")
        with pytest.raises(TransitionInvalide):
            workflow.verifier_reprogrammation(StatutRDV.TERMINE)
        workflow.verifier_mutation_terminale(StatutRDV.CONFIRME, "compte rendu")

    def test_parent_impact(self):
        workflow.verifier_parent_impact(TypeRDV.POSITIONNEMENT)
        with pytest.raises(DonneesInvalides):
            workflow.verifier_parent_impact(TypeRDV.IMPACT)

    def test_rendezvous_impact(self):
        with pytest.raises(DonneesInvalides):
            workflow.verifier_rendezvous_impact(TypeRDV.POSITIONNEMENT)

    def test_changement_type_libre_sans_impact(self):
        workflow.verifier_changement_type(TypeRDV.POSITIONNEMENT, TypeRDV.SUIVI, a_des_impacts=False)
        workflow.verifier_changement_type(TypeRDV.IMPACT, TypeRDV.IMPACT, a_des_impacts=False)

    @pytest.mark.parametrize("actuel,cible,a_des_impacts", [
        (TypeRDV.POSITIONNEMENT, TypeRDV.INFORMATION, True),
        (TypeRDV.IMPACT, TypeRDV.POSITIONNEMENT, False),
        (TypeRDV.SUIVI, TypeRDV.IMPACT, False),
    ])
    def test_changement_type_refuse(self, actuel, cible, a_des_impacts):
        with pytest.raises(DonneesInvalides):
            workflow.verifier_changement_type(actuel, cible, a_des_impacts)


class TestDates:

    def test_ajouter_mois(self):
        assert workflow.ajouter_mois(datetime(2024, 3, 15), 6) == datetime(2024, 9, 15)
        assert workflow.ajouter_mois(datetime(2024, 9, 10), 6) == datetime(2025, 3, 10)

    def test_fin_de_mois_ramenee(self):
        assert workflow.ajouter_mois(datetime(2024, 8, 31), 6) == datetime(2025, 2, 28)

    def test_date_impact_par_defaut(self):
        maintenant = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)
        assert workflow.date_impact_par_defaut(maintenant) == datetime(2024, 7, 10, 9, 0, tzinfo=timezone.utc)
