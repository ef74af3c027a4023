"""
Fixtures communes : base SQLite en mémoire, application FastAPI, données de test
"""
import os

# La configuration est lue à l'import : la base doit être fixée avant
os.environ["DB_URL"] = "sqlite://"
os.environ["AUTH_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from gestion_formation_hub.core.database import engine, get_session
from gestion_formation_hub.main import app


def _session_de_test():
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def base_de_donnees():
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    app.dependency_overrides[get_session] = _session_de_test
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def donnees_positionnement():
    return {
        "type": "positionnement",
        "nom": "Dupont",
        "prenom": "Jean",
        "email": "jean.dupont@example.com",
        "telephone": "0123456789",
        "formationTitre": "Formation React",
        "objectifs": ["Maîtriser les hooks", "Tester les composants"],
        "niveau": "débutant",
    }


@pytest.fixture
def formulaire_positionnement():
    """Formulaire côté client (forme canonique)"""
    return {
        "nomBeneficiaire": "Martin",
        "prenomBeneficiaire": "Claire",
        "emailBeneficiaire": "claire.martin@example.com",
        "telephoneBeneficiaire": "01 23 45 67 89",
        "formationSelectionnee": "Formation Angular",
        "objectifs": ["Découvrir Angular", "Créer une application"],
        "niveauBeneficiaire": "intermédiaire",
        "modaliteFormation": "visio",
    }


@pytest.fixture
def rdv_cree(client, donnees_positionnement):
    response = client.post("/api/rendezvous", json=donnees_positionnement)
    assert response.status_code == 201
    return response.json()["data"]
