"""
commitgate
==========
License: BSD, see LICENSE for more details.
"""

import logging

from .gate import CommitGate
from .repository import Repository

__all__ = ["CommitGate", "Repository"]


# When used as a library, we default to opt-in approach, whereas library user
# has to enable logging
logging.getLogger(__name__).addHandler(logging.NullHandler())
