"""
Erreurs remontées par le client HTTP des rendez-vous

Chaque erreur porte un message fixe, lisible par l'utilisateur, et un
`kind` stable que la couche de présentation peut tester.
"""
from typing import List, Optional


class ErreurClient(Exception):
    kind = "network_or_server_error"

    def __init__(self, message: str, erreurs: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.erreurs = erreurs or []


class RendezvousIntrouvable(ErreurClient):
    kind = "not_found"


class ValidationEchouee(ErreurClient):
    """Validation locale ou refus du serveur ; aucune requête n'est envoyée dans le premier cas"""
    kind = "validation_failed"


class ReponseInvalide(ErreurClient):
    kind = "invalid_response"


class ErreurReseauOuServeur(ErreurClient):
    kind = "network_or_server_error"


class ConflitRendezvous(ErreurClient):
    kind = "conflict"


class TransitionRefusee(ErreurClient):
    kind = "invalid_transition"


class OperationEnCours(ErreurClient):
    kind = "operation_pending"
