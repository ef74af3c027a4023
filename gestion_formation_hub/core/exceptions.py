"""
Exceptions métier levées par les services et traduites en réponses JSON
par les gestionnaires enregistrés dans main.py
"""
from typing import Any, List, Optional


class GestionFormationError(Exception):
    """Erreur métier de base"""

    code = "error"
    status_code = 500

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class RessourceIntrouvable(GestionFormationError):
    code = "not_found"
    status_code = 404


class DonneesInvalides(GestionFormationError):
    code = "validation_failed"
    status_code = 400


class DoublonError(GestionFormationError):
    code = "duplicate"
    status_code = 409


class TransitionInvalide(GestionFormationError):
    """Changement de statut refusé par la machine à états"""

    code = "invalid_transition"
    status_code = 409


class ConflitVersion(GestionFormationError):
    """La version envoyée (If-Match) ne correspond plus à celle en base"""

    code = "conflict"
    status_code = 409


class AccesRefuse(GestionFormationError):
    code = "forbidden"
    status_code = 403


class NonAuthentifie(GestionFormationError):
    code = "unauthorized"
    status_code = 401
