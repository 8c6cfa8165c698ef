"""Django admin configuration for files app."""

from django.contrib import admin
from django.http import HttpRequest

from server.apps.files.models import FileVersion

_KB = 1024


@admin.register(FileVersion)
class FileVersionAdmin(admin.ModelAdmin):
    """Read-only admin interface for file version records.

    Records are written through the file service only, so that blobs
    and metadata stay paired.
    """

    list_display = [
        'file_name',
        'version',
        'uploader_username',
        'uploader_company',
        'size_display',
        'content_type',
        'uploaded_at',
    ]

    list_filter = [
        'content_type',
        'uploaded_at',
        'uploader_company',
    ]

    search_fields = [
        'file_name',
        'uploader_username',
        '=logical_file_id',
    ]

    fieldsets = (
        ('File Information', {
            'fields': ('id', 'logical_file_id', 'file_name', 'version'),
        }),
        ('Storage', {
            'fields': ('blob_locator', 'size_bytes', 'content_type'),
        }),
        ('Uploader', {
            'fields': (
                'uploader_id',
                'uploader_username',
                'uploader_company',
                'uploader_role',
            ),
        }),
        ('Timestamps', {
            'fields': ('uploaded_at',),
        }),
    )

    def get_readonly_fields(
        self,
        request: HttpRequest,
        obj: FileVersion | None = None,
    ) -> list[str]:
        """Make every field read-only."""
        return [field.name for field in FileVersion._meta.fields]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Disallow creating records without a blob."""
        return False

    def has_delete_permission(
        self,
        request: HttpRequest,
        obj: FileVersion | None = None,
    ) -> bool:
        """Disallow deleting records without deleting the blob."""
        return False

    def size_display(self, obj: FileVersion) -> str:
        """Display file size in human-readable format.

        Args:
            obj: FileVersion instance.

        Returns:
            Formatted size string (e.g., '1.5 MB', '234 KB').
        """
        size_bytes = obj.size_bytes

        # Convert to appropriate unit
        if size_bytes < _KB:
            return f'{size_bytes} B'
        if size_bytes < _KB ** 2:
            return f'{size_bytes / _KB:.1f} KB'
        if size_bytes < _KB ** 3:
            return f'{size_bytes / _KB ** 2:.1f} MB'
        return f'{size_bytes / _KB ** 3:.1f} GB'
    size_display.short_description = 'Size'  # type: ignore[attr-defined]
