# qbuilder/routers/__init__.py

from .auth.auth_router import router as auth_router
from .support.activity_router import router as activity_router

from .clients.client_router import router as client_router

from .catalog.profession_router import router as profession_router
from .catalog.catalog_router import router as catalog_router

from .quotes.quote_router import router as quote_router

from .projects.project_router import router as project_router
from .projects.payment_router import router as payment_router
