"""
Configuration de l'application Gestion Formation Hub (compatible Pydantic v2)
"""
from typing import List, Optional, ClassVar
from pathlib import Path
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Constante globale (pas dans la classe)
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Paramètres centralisés (chargés via .env si présent)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # ignore les clés inconnues
    )

    # === Base de données ===
    PGUSER: Optional[str] = "formation"
    PGPASSWORD: Optional[str] = "formation"
    PGHOST: Optional[str] = "localhost"
    PGPORT: Optional[int] = 5432
    PGDATABASE: Optional[str] = "gestion_formation"

    # URL complète (prioritaire sur les paramètres PG*), ex: "sqlite://"
    DB_URL: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        """URL de connexion à la base de données."""
        if self.DB_URL:
            return self.DB_URL
        password = quote_plus(self.PGPASSWORD) if self.PGPASSWORD else ""
        return f"postgresql+psycopg://{self.PGUSER}:{password}@{self.PGHOST}:{self.PGPORT}/{self.PGDATABASE}"

    # === Sécurité / JWT du fournisseur d'identité ===
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    AUTH_ENABLED: bool = False
    ADMIN_ROLES: List[str] = ["admin"]

    # === Cycle de vie des rendez-vous ===
    ALLOW_MUTATION_AFTER_TERMINAL: bool = True
    SATISFACTION_ECHELLE_MAX: int = 10
    IMPACT_DELAI_MOIS: int = 6
    RAPPORT_IMPACT_URL_DEFAUT: str = "/api/rapports/default.pdf"

    # === Client HTTP ===
    API_BASE_URL: str = "http://localhost:8000"
    API_TIMEOUT: float = 30.0

    # === App ===
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1"]
    CORS_ALLOW_ALL: bool = False
    CACHE_ENABLED: bool = True

    # Constantes non issues de l'env (pas des champs)
    VERSION: ClassVar[str] = "1.0.0"
    APP_NAME: ClassVar[str] = "Gestion Formation Hub"

    @property
    def TEMPLATE_DIR(self) -> Path:
        return BASE_DIR / "templates"

    # Autoriser "ALLOWED_HOSTS=localhost,127.0.0.1" dans .env
    @field_validator("ALLOWED_HOSTS", "ADMIN_ROLES", mode="before")
    @classmethod
    def _split_csv(cls, v):
        if isinstance(v, str):
            return [h.strip() for h in v.split(",") if h.strip()]
        return v


settings = Settings()
