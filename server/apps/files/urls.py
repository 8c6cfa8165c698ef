"""URL routes for the file store API."""

from django.urls import path

from server.apps.files import views

app_name = 'files'

urlpatterns = [
    path('', views.FileListView.as_view(), name='list'),
    path('upload', views.UploadView.as_view(), name='upload'),
    path(
        'upload/version/<str:file_id>',
        views.VersionUploadView.as_view(),
        name='upload-version',
    ),
    path(
        'download/<str:record_id>',
        views.DownloadView.as_view(),
        name='download',
    ),
    path(
        'versions/<str:file_id>',
        views.VersionListView.as_view(),
        name='versions',
    ),
    path('<str:record_id>', views.FileDetailView.as_view(), name='detail'),
]
