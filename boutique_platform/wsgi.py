"""
WSGI config for the boutique platform.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'boutique_platform.settings')

application = get_wsgi_application()
