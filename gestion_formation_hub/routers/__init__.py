"""
Routers FastAPI de Gestion Formation Hub
"""
from .rendezvous import router as rendezvous_router
from .programmes import router as programmes_router
from .categories import router as categories_router
from .users import router as users_router
from .veille import router as veille_router
from .reclamations import router as reclamations_router
from .actions_correctives import router as actions_correctives_router
from .health import router as health_router

# Configuration des routers avec préfixes et tags
router_configs = [
    (rendezvous_router, "/api/rendezvous", ["rendezvous"]),
    (programmes_router, "/api/programmes-formation", ["programmes"]),
    (categories_router, "/api/categories", ["categories"]),
    (users_router, "/api/users", ["utilisateurs"]),
    (veille_router, "/api/veille", ["veille"]),
    (reclamations_router, "/api/reclamations", ["qualite"]),
    (actions_correctives_router, "/api/actions-correctives", ["qualite"]),
    (health_router, "/api/health", ["supervision"]),
]

__all__ = [
    "rendezvous_router",
    "programmes_router",
    "categories_router",
    "users_router",
    "veille_router",
    "reclamations_router",
    "actions_correctives_router",
    "health_router",
    "router_configs",
]
