# kafala/apps.py

"""
KAFALA ENGINE APP CONFIG

Holds the allocation / installment engine and its storage capability.
No models of its own: it reads and writes through KafalaStore.
"""

from django.apps import AppConfig


class KafalaConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "kafala"
    verbose_name = "Kafala Engine"
