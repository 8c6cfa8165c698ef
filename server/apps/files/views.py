"""JSON HTTP endpoints for the file store.

Views only translate HTTP to ``FileService`` calls and exceptions to
status codes; all rules live in ``server.apps.files.logic``.
"""

import functools
import json
import logging
from collections.abc import Callable
from http import HTTPStatus
from typing import Any, Final

from django.http import (
    FileResponse,
    HttpRequest,
    HttpResponse,
    JsonResponse,
)
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from server.apps.files.entities import FileChanges, FileFilter, Identity
from server.apps.files.exceptions import (
    FileStoreError,
    FileTooLargeError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    StorageFailureError,
    UnauthorizedError,
)
from server.apps.files.infrastructure.identity import (
    build_token_decoder,
    extract_token,
)
from server.apps.files.logic.file_operations import (
    FileService,
    build_file_service,
)

logger = logging.getLogger(__name__)

_ErrorStatus = tuple[type[FileStoreError], HTTPStatus]

# Most specific classes first
_STATUS_BY_ERROR: Final[tuple[_ErrorStatus, ...]] = (
    (FileTooLargeError, HTTPStatus.REQUEST_ENTITY_TOO_LARGE),
    (InvalidInputError, HTTPStatus.BAD_REQUEST),
    (UnauthorizedError, HTTPStatus.UNAUTHORIZED),
    (ForbiddenError, HTTPStatus.FORBIDDEN),
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (StorageFailureError, HTTPStatus.BAD_GATEWAY),
)

_UPLOAD_FIELD: Final = 'file'


def _envelope(
    message: str,
    data: Any = None,
    status: HTTPStatus = HTTPStatus.OK,
) -> JsonResponse:
    payload: dict[str, Any] = {
        'success': status < HTTPStatus.BAD_REQUEST,
        'message': message,
    }
    if data is not None:
        payload['data'] = data
    return JsonResponse(payload, status=status)


def _status_for(error: FileStoreError) -> HTTPStatus:
    for error_class, status in _STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


def json_errors(
    handler: Callable[..., HttpResponse],
) -> Callable[..., HttpResponse]:
    """Turn file store exceptions into JSON error responses."""

    @functools.wraps(handler)
    def wrapper(
        view: View,
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> HttpResponse:
        try:
            return handler(view, request, *args, **kwargs)
        except FileStoreError as exc:
            status = _status_for(exc)
            if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
                logger.exception(
                    '%s %s failed',
                    request.method,
                    request.path,
                )
            return _envelope(str(exc), status=status)
        except Exception:
            logger.exception(
                'Unexpected error on %s %s',
                request.method,
                request.path,
            )
            return _envelope(
                'Internal server error',
                status=HTTPStatus.INTERNAL_SERVER_ERROR,
            )

    return wrapper


@method_decorator(csrf_exempt, name='dispatch')
class FileStoreView(View):
    """Base view: resolves the caller and builds the file service."""

    def get_service(self) -> FileService:
        """Build the file service for this request."""
        return build_file_service()

    def get_identity(self) -> Identity | None:
        """Resolve the caller from the bearer token, if any."""
        return build_token_decoder().resolve(extract_token(self.request))

    def require_identity(self) -> Identity:
        """Resolve the caller or fail with 401.

        Returns:
            Caller identity.

        Raises:
            UnauthorizedError: If the token is missing or invalid.
        """
        identity = self.get_identity()
        if identity is None:
            raise UnauthorizedError('Unauthorized')
        return identity

    def uploaded_file(self) -> Any:
        """Get the multipart ``file`` field.

        Raises:
            InvalidInputError: If no file was sent.
        """
        upload = self.request.FILES.get(_UPLOAD_FIELD)
        if upload is None:
            raise InvalidInputError('No file provided')
        return upload


class FileListView(FileStoreView):
    """``GET /files``: current version of every matching file."""

    @json_errors
    def get(self, request: HttpRequest) -> HttpResponse:
        """List files visible to the caller.

        Without an explicit ``company`` filter the listing is limited
        to the caller's company.
        """
        identity = self.require_identity()
        filters = _filters_from_query(
            request,
            default_company=identity.company,
        )
        summaries = self.get_service().list_files(filters, identity)
        return _envelope(
            'Files retrieved successfully',
            [summary.as_json() for summary in summaries],
        )


class UploadView(FileStoreView):
    """``POST /files/upload``: store a new logical file."""

    @json_errors
    def post(self, request: HttpRequest) -> HttpResponse:
        """Upload the multipart ``file`` field as version 0."""
        identity = self.require_identity()
        upload = self.uploaded_file()
        summary = self.get_service().upload(
            upload,
            upload.name,
            upload.content_type,
            identity,
        )
        return _envelope(
            'File uploaded and metadata saved successfully',
            summary.as_json(),
        )


class VersionUploadView(FileStoreView):
    """``POST /files/upload/version/<file_id>``: add a version."""

    @json_errors
    def post(self, request: HttpRequest, file_id: str) -> HttpResponse:
        """Upload the multipart ``file`` field as the next version."""
        identity = self.require_identity()
        upload = self.uploaded_file()
        summary = self.get_service().upload_version(
            file_id,
            upload,
            upload.name,
            upload.content_type,
            identity,
        )
        return _envelope(
            'New version uploaded successfully',
            summary.as_json(),
        )


class VersionListView(FileStoreView):
    """``GET /files/versions/<file_id>``: all versions, newest first."""

    @json_errors
    def get(self, request: HttpRequest, file_id: str) -> HttpResponse:
        """List every version of a logical file."""
        self.require_identity()
        summaries = self.get_service().list_versions(file_id)
        return _envelope(
            'File versions retrieved successfully',
            [summary.as_json() for summary in summaries],
        )


class DownloadView(FileStoreView):
    """``GET /files/download/<record_id>``: stream a version's bytes.

    Public, download links are handed out in listings.
    """

    @json_errors
    def get(self, request: HttpRequest, record_id: str) -> HttpResponse:
        """Stream the file inline (images) or as an attachment."""
        download = self.get_service().download(record_id)
        response = FileResponse(
            download.stream,
            content_type=download.content_type,
        )
        response['Content-Disposition'] = download.disposition
        return response


class FileDetailView(FileStoreView):
    """``PUT`` / ``DELETE /files/<record_id>``."""

    @json_errors
    def put(self, request: HttpRequest, record_id: str) -> HttpResponse:
        """Change ``fileName`` and/or ``contentType`` of a version."""
        identity = self.require_identity()
        body = _json_body(request)
        changes = FileChanges(
            file_name=body.get('fileName'),
            content_type=body.get('contentType'),
        )
        summary = self.get_service().update(record_id, changes, identity)
        return _envelope(
            'File metadata updated successfully',
            summary.as_json(),
        )

    @json_errors
    def delete(self, request: HttpRequest, record_id: str) -> HttpResponse:
        """Delete a version and its bytes."""
        identity = self.require_identity()
        self.get_service().delete(record_id, identity)
        return _envelope('File deleted successfully')


def _json_body(request: HttpRequest) -> dict[str, Any]:
    try:
        body = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidInputError('Request body must be JSON') from exc
    if not isinstance(body, dict):
        raise InvalidInputError('Request body must be a JSON object')
    return body


def _size_param(request: HttpRequest, name: str) -> int | None:
    raw_value = request.GET.get(name)
    if not raw_value:
        return None
    try:
        return int(raw_value)
    except ValueError as exc:
        raise InvalidInputError(f'{name} must be an integer') from exc


def _filters_from_query(
    request: HttpRequest,
    default_company: str,
) -> FileFilter:
    query = request.GET
    return FileFilter(
        id=query.get('id'),
        file_name=query.get('fileName'),
        username=query.get('username'),
        user_id=query.get('userId'),
        company=query.get('company') or default_company,
        content_type=query.get('fileType') or query.get('contentType'),
        date_from=query.get('dateFrom'),
        date_to=query.get('dateTo'),
        min_size=_size_param(request, 'minSize'),
        max_size=_size_param(request, 'maxSize'),
        sort_by=query.get('sortBy'),
        order=query.get('order') or 'asc',
    )
