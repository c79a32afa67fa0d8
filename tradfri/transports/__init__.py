"""Package containing all supported endpoints."""

from .basetransport import BaseEndpoint
from .dtlstransport import DtlsEndpoint

__all__ = [
    "BaseEndpoint",
    "DtlsEndpoint",
]
