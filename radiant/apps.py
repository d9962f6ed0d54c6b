from django.apps import AppConfig


class RadiantConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "radiant"
    verbose_name = "Radiant - Spa Loyalty & Checkout"
