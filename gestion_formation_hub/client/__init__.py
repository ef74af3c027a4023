"""
Client HTTP du cycle de vie des rendez-vous
"""
from .erreurs import (
    ErreurClient, RendezvousIntrouvable, ValidationEchouee, ReponseInvalide,
    ErreurReseauOuServeur, ConflitRendezvous, TransitionRefusee, OperationEnCours,
)
from .resultat import Ok, Err
from .rendezvous_client import RendezvousClient, MESSAGES_ERREUR, MESSAGE_FORMAT_INVALIDE

__all__ = [
    "RendezvousClient", "MESSAGES_ERREUR", "MESSAGE_FORMAT_INVALIDE",
    "Ok", "Err",
    "ErreurClient", "RendezvousIntrouvable", "ValidationEchouee", "ReponseInvalide",
    "ErreurReseauOuServeur", "ConflitRendezvous", "TransitionRefusee", "OperationEnCours",
]
