"""Django app configuration for Cargoman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class CargomanConfig(AppConfig):
    """Configuration for Cargoman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "cargoman"
    verbose_name = _("Asset Fulfillment")
