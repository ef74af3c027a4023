"""
Configuration des templates Jinja2 (documents imprimables)
"""
from datetime import datetime

from fastapi.templating import Jinja2Templates

from ..core.config import settings
from ..services.validation import LIBELLES_CANAL, LIBELLES_STATUT

templates = Jinja2Templates(directory=str(settings.TEMPLATE_DIR))


# Filtres personnalisés pour Jinja2
def format_date(value, avec_heure: bool = True):
    if not value:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value.strftime("%d/%m/%Y %H:%M" if avec_heure else "%d/%m/%Y")


def libelle_statut(value):
    value = getattr(value, "value", value)
    return LIBELLES_STATUT.get(value, value or "")


def libelle_canal(value):
    value = getattr(value, "value", value)
    return LIBELLES_CANAL.get(value) or value or "Non spécifié"


templates.env.filters["format_date"] = format_date
templates.env.filters["libelle_statut"] = libelle_statut
templates.env.filters["libelle_canal"] = libelle_canal
