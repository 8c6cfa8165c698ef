"""Filtering, latest-version reduction and sorting of file listings."""

import datetime as dt
import logging
import uuid
from collections.abc import Callable, Iterable
from typing import Final

from django.db.models import Q
from django.utils.dateparse import parse_date

from server.apps.files.entities import FileFilter
from server.apps.files.models import FileVersion

logger = logging.getLogger(__name__)

_SORT_KEYS: Final[dict[str, Callable[[FileVersion], object]]] = {
    'date': lambda record: record.uploaded_at,
    'size': lambda record: record.size_bytes,
}

_DESCENDING: Final = 'desc'


def _present(raw_value: str | None) -> bool:
    return raw_value is not None and raw_value != ''


def _parse_day(raw_value: str | None, bound: str) -> dt.date | None:
    """Parse a ``YYYY-MM-DD`` filter value.

    Malformed values are ignored and impose no constraint.
    """
    if not _present(raw_value):
        return None
    try:
        parsed = parse_date(raw_value)
    except ValueError:
        parsed = None
    if parsed is None:
        # TODO: decide with product whether a bad date should be a 400
        logger.warning('Ignoring malformed %s filter: %r', bound, raw_value)
    return parsed


def build_predicate(filters: FileFilter) -> Q:  # noqa: C901, WPS231
    """Translate listing criteria into a metadata store predicate.

    Args:
        filters: Optional criteria, absent or empty ones are skipped.

    Returns:
        Combined ``Q`` object, empty when nothing constrains the query.
    """
    predicate = Q()

    if _present(filters.id):
        try:
            predicate &= Q(id=uuid.UUID(filters.id))
        except ValueError:
            # No record can have a malformed id
            predicate &= Q(pk__in=[])
    if _present(filters.file_name):
        predicate &= Q(file_name__icontains=filters.file_name)
    if _present(filters.username):
        predicate &= Q(uploader_username__icontains=filters.username)
    if _present(filters.user_id):
        predicate &= Q(uploader_id=filters.user_id)
    if _present(filters.company):
        predicate &= Q(uploader_company=filters.company)
    if _present(filters.content_type):
        predicate &= Q(content_type=filters.content_type)

    date_from = _parse_day(filters.date_from, 'dateFrom')
    if date_from is not None:
        predicate &= Q(uploaded_at__date__gte=date_from)
    date_to = _parse_day(filters.date_to, 'dateTo')
    if date_to is not None:
        predicate &= Q(uploaded_at__date__lte=date_to)

    if filters.min_size is not None:
        predicate &= Q(size_bytes__gte=filters.min_size)
    if filters.max_size is not None:
        predicate &= Q(size_bytes__lte=filters.max_size)

    return predicate


def latest_per_logical_file(
    records: Iterable[FileVersion],
) -> list[FileVersion]:
    """Keep only the highest version of every logical file.

    Records are expected in creation order. On equal versions the first
    one seen wins. Each logical file keeps the position of its first
    record.

    Args:
        records: Matching records.

    Returns:
        One representative record per logical file.
    """
    latest: dict[uuid.UUID, FileVersion] = {}
    for record in records:
        current = latest.get(record.logical_file_id)
        if current is None or record.version > current.version:
            latest[record.logical_file_id] = record
    return list(latest.values())


def sort_records(
    records: list[FileVersion],
    sort_by: str | None,
    order: str | None,
) -> list[FileVersion]:
    """Order listing output.

    Args:
        records: Records to order.
        sort_by: 'date' or 'size'; anything else keeps the given order.
        order: 'desc' for descending, ascending otherwise.

    Returns:
        New ordered list.
    """
    sort_key = _SORT_KEYS.get((sort_by or '').lower())
    if sort_key is None:
        return list(records)
    descending = (order or '').lower() == _DESCENDING
    return sorted(records, key=sort_key, reverse=descending)
