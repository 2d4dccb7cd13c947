# Users and auth
from qbuilder.models.users.user_models import User, RefreshToken
from qbuilder.models.support.activity_models import UserActivity

# Clients
from qbuilder.models.clients.client_models import Client

# Catalog
from qbuilder.models.catalog.profession_models import Profession
from qbuilder.models.catalog.catalog_item_models import CatalogItem

# Quotes
from qbuilder.models.quotes.quote_models import Quote, QuoteItem

# Projects
from qbuilder.models.projects.project_models import Project
from qbuilder.models.projects.payment_models import Payment
