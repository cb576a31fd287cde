from django.apps import AppConfig


class BankrecConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "bankrec"
    verbose_name = "Banque"
