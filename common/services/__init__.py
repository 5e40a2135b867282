"""
Service wrappers for test infrastructure.
"""

from common.services.base import RemoteService
from common.services.bor import BorProps, BorService
from common.services.heimdall import HeimdallProps, HeimdallService
from common.services.validator import ValidatorAdminService

__all__ = [
    "RemoteService",
    "BorService",
    "BorProps",
    "HeimdallService",
    "HeimdallProps",
    "ValidatorAdminService",
]
