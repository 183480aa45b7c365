from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class BoutiqueConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'boutique'
    verbose_name = _('Boutique')
