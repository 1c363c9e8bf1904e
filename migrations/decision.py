"""
Classifies an installed data version against the version this build expects.
"""

from enum import Enum
from typing import Optional

import config

# The one predecessor this build can migrate from
FROM_VERSION = "1.2.0"
TO_VERSION = config.VERSION


class Decision(Enum):
    UP_TO_DATE = 'up_to_date'
    PERFORM_DIRECT = 'perform_direct'
    UNSUPPORTED_SKIP = 'unsupported_skip'


def decide(installed: Optional[str], target: str = TO_VERSION,
           from_version: str = FROM_VERSION) -> Decision:
    """Decide what to do with an installation at version `installed`."""
    if installed == target:
        return Decision.UP_TO_DATE
    if installed == from_version:
        return Decision.PERFORM_DIRECT
    return Decision.UNSUPPORTED_SKIP
