"""
Modèles SQLModel et énumérations
"""
from .enums import (
    TypeRDV, StatutRDV, CanalRDV, TypeProgramme, StatutDossier, UserRole,
    TypeVeille, StatutVeille,
)
from .base import (
    Rendezvous, CategorieProgramme, ProgrammeFormation, DossierFormation,
    User, Veille, VeilleCommentaire, VeilleHistorique,
)
