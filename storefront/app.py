# module storefront.app
"""Instance globale de l'application (construite par la factory)."""
from storefront.app_setup.factory import create_app

app = create_app()
