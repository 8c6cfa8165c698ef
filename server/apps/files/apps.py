"""Django app configuration for the file store."""

from django.apps import AppConfig


class FilesConfig(AppConfig):
    """Versioned file storage app."""

    name = 'server.apps.files'
    label = 'files'
    verbose_name = 'Versioned files'
