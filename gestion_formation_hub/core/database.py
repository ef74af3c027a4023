"""
Configuration de la base de données pour Gestion Formation Hub

Ce module configure la connexion (PostgreSQL en production, SQLite en test)
avec SQLModel et fournit les sessions de base de données pour l'application.
"""
import logging
from typing import Generator

from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from .config import settings

# Importer tous les modèles pour que SQLModel.metadata.create_all() fonctionne
from ..models.base import (  # noqa: F401
    Rendezvous, ProgrammeFormation, CategorieProgramme, DossierFormation,
    User, Veille, VeilleCommentaire, VeilleHistorique,
    Reclamation, ActionCorrective, HistoriqueActionCorrective,
)

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True, "connect_args": {"options": "-c client_encoding=UTF8"}}


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    **_engine_kwargs(settings.DATABASE_URL),
)


def create_db_and_tables() -> None:
    """Crée les tables de la base de données."""
    SQLModel.metadata.create_all(engine)
    logger.info("✅ Tables créées avec succès")


# Dépendance FastAPI : ouvre/ferme une session par requête
def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def verifier_connexion_db() -> bool:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True
