import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='FileVersion',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('logical_file_id', models.UUIDField(db_index=True, help_text='Identifier shared by all versions of one file')),
                ('file_name', models.CharField(help_text='Display name, without version suffix', max_length=255)),
                ('blob_locator', models.CharField(help_text='Key the blob store needs to read the bytes', max_length=1024)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('content_type', models.CharField(default='application/octet-stream', max_length=255)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('uploader_id', models.CharField(db_index=True, max_length=150)),
                ('uploader_username', models.CharField(blank=True, default='', max_length=150)),
                ('uploader_company', models.CharField(blank=True, db_index=True, default='', max_length=150)),
                ('uploader_role', models.CharField(blank=True, default='', max_length=150)),
                ('version', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'File version',
                'verbose_name_plural': 'File versions',
                'ordering': ['-uploaded_at'],
                'indexes': [models.Index(fields=['logical_file_id', '-version'], name='files_logical_version_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('size_bytes__gte', 0)), name='size_bytes_non_negative')],
            },
        ),
    ]
