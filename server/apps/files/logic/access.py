"""Access rules for changing or deleting file versions.

One policy is chosen at startup (``FILES_ACCESS_POLICY``) and used for
both updates and deletes.
"""

import abc
from typing import Final, final, override

from django.core.exceptions import ImproperlyConfigured

from server.apps.files.entities import Identity
from server.apps.files.models import FileVersion


class AccessPolicy(abc.ABC):
    """Decides whether an identity may mutate a record."""

    def can_mutate(
        self,
        record: FileVersion,
        identity: Identity | None,
    ) -> bool:
        """Check whether ``identity`` may update or delete ``record``.

        Anonymous callers are always denied.

        Args:
            record: Record about to be changed.
            identity: Caller, None when unauthenticated.

        Returns:
            True if the change is allowed.
        """
        if identity is None:
            return False
        return self.allows(record, identity)

    @abc.abstractmethod
    def allows(self, record: FileVersion, identity: Identity) -> bool:
        """Policy specific check for an authenticated caller."""


@final
class OwnerPolicy(AccessPolicy):
    """Only the uploader may change a record."""

    @override
    def allows(self, record: FileVersion, identity: Identity) -> bool:
        return record.uploader_id == identity.user_id


@final
class OwnerOrCompanyPolicy(AccessPolicy):
    """The uploader or anyone from the uploader's company may change it."""

    @override
    def allows(self, record: FileVersion, identity: Identity) -> bool:
        if record.uploader_id == identity.user_id:
            return True
        # Blank companies never match each other
        return bool(identity.company) and (
            record.uploader_company == identity.company
        )


_POLICIES: Final[dict[str, type[AccessPolicy]]] = {
    'owner': OwnerPolicy,
    'company': OwnerOrCompanyPolicy,
}


def get_access_policy(name: str) -> AccessPolicy:
    """Instantiate the configured policy.

    Args:
        name: Policy name, 'owner' or 'company'.

    Returns:
        Access policy instance.

    Raises:
        ImproperlyConfigured: If the name is unknown.
    """
    try:
        policy_class = _POLICIES[name]
    except KeyError as exc:
        raise ImproperlyConfigured(
            f'Unknown FILES_ACCESS_POLICY: {name!r}',
        ) from exc
    return policy_class()
