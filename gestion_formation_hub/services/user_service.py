"""
Service de gestion des utilisateurs

Les comptes sont créés chez le fournisseur d'identité ; la base locale
conserve le rôle et l'état actif. La suppression se limite à une
désactivation locale.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, or_, select

from ..core.exceptions import DoublonError, RessourceIntrouvable
from ..models.base import User
from ..models.enums import UserRole
from ..schemas.user_schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service de gestion des utilisateurs"""

    @staticmethod
    def lister(session: Session, role: Optional[UserRole] = None, actif: Optional[bool] = None) -> List[User]:
        query = select(User)
        if role:
            query = query.where(User.role == role)
        if actif is not None:
            query = query.where(User.is_active == actif)
        return list(session.exec(query.order_by(User.created_at.desc())).all())

    @staticmethod
    def get_user_by_email(session: Session, email: str) -> Optional[User]:
        """Récupère un utilisateur par email"""
        return session.exec(select(User).where(User.email == email)).first()

    @staticmethod
    def obtenir(session: Session, user_id: str) -> User:
        """Recherche par identifiant local ou par identifiant du fournisseur"""
        user = session.exec(
            select(User).where(or_(User.id == user_id, User.external_id == user_id))
        ).first()
        if not user:
            raise RessourceIntrouvable("Utilisateur non trouvé")
        return user

    @staticmethod
    def create_user(session: Session, user_data: UserCreate) -> User:
        """Crée un nouvel utilisateur"""
        if UserService.get_user_by_email(session, user_data.email):
            raise DoublonError("Un utilisateur avec cet email existe déjà")
        user = User(**user_data.model_dump())
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("👤 Utilisateur créé: %s (%s)", user.email, user.role.value)
        return user

    @staticmethod
    def update_user(session: Session, user_id: str, user_data: UserUpdate) -> User:
        """Met à jour un utilisateur"""
        user = UserService.obtenir(session, user_id)
        update_data = user_data.model_dump(exclude_unset=True)

        email = update_data.get("email")
        if email and email != user.email:
            existant = UserService.get_user_by_email(session, email)
            if existant and existant.id != user.id:
                raise DoublonError("Un utilisateur avec cet email existe déjà")

        for field, value in update_data.items():
            setattr(user, field, value)
        user.updated_at = datetime.now(timezone.utc)

        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    @staticmethod
    def changer_actif(session: Session, user_id: str, actif: bool) -> User:
        user = UserService.update_user(session, user_id, UserUpdate(is_active=actif))
        logger.info("👤 Utilisateur %s %s", user.email, "activé" if actif else "désactivé")
        return user
