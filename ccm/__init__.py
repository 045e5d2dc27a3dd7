"""ccm - manage Claude Code configuration profiles and switch between them."""

from ccm.core import CCM_VERSION

__version__ = CCM_VERSION
