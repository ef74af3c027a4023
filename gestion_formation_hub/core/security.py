"""
Module de sécurité pour l'authentification

L'identité est déléguée à un fournisseur externe qui émet des JWT (HS256).
Ce module se contente de vérifier le token et d'en extraire l'identité :
- aucun mot de passe n'est stocké ici
- si AUTH_ENABLED est à False, une identité "système" est renvoyée
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import settings
from .exceptions import AccesRefuse, NonAuthentifie

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Identite:
    """Utilisateur authentifié tel que décrit par le token"""
    sub: str
    email: Optional[str] = None
    role: str = "user"

    @property
    def est_admin(self) -> bool:
        return self.role in settings.ADMIN_ROLES


IDENTITE_SYSTEME = Identite(sub="systeme", email=None, role="admin")


# ----------------------------
# JWT utils
# ----------------------------
def verify_token(token: str) -> Optional[dict]:
    """Décode/valide un token JWT. Retourne le payload si valide, sinon None."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def create_access_token(data: dict) -> str:
    """Utilisé par les tests et les scripts d'intégration"""
    return jwt.encode(data.copy(), settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _extract_token_from_request(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Header Authorization: Bearer <token>, sinon cookie '__session'"""
    if credentials and credentials.credentials:
        return credentials.credentials
    token = request.cookies.get("__session")
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token or None


# ----------------------------
# Current user
# ----------------------------
async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identite:
    if not settings.AUTH_ENABLED:
        return IDENTITE_SYSTEME

    token = _extract_token_from_request(request, credentials)
    if not token:
        raise NonAuthentifie("Non autorisé")

    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        logger.warning("🔑 Token invalide pour %s", request.url.path)
        raise NonAuthentifie("Token invalide")

    return Identite(
        sub=payload["sub"],
        email=payload.get("email"),
        role=payload.get("role") or "user",
    )


async def require_admin(current_user: Identite = Depends(get_current_user)) -> Identite:
    """Vérifie que l'utilisateur a un des rôles d'administration."""
    if not current_user.est_admin:
        logger.warning("🚫 Accès admin refusé pour %s (rôle %s)", current_user.sub, current_user.role)
        raise AccesRefuse("Accès refusé. Droits administrateur requis.")
    return current_user
