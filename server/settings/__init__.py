"""Django settings for the versioned file store.

Settings are split into components, each responsible for one concern.
Values come from the environment via python-decouple.
"""

from server.settings.components.common import *  # noqa: F403, WPS347
from server.settings.components.files import *  # noqa: F403, WPS347
from server.settings.components.logging import *  # noqa: F403, WPS347
from server.settings.components.storages import *  # noqa: F403, WPS347
