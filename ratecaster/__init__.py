import logging

from . import config
from .aggregation import ReadPolicy, compute_stats
from .binding import BindingState, SessionBinding
from .categories import CategoryInfo, resolve_category
from .chain.connection import ChainConnection, TxHandle
from .client import RateCaster
from .errors import (
    ConfigurationError,
    RateCasterError,
    RemoteError,
    TransportError,
    ValidationError,
)
from .hashing import canonicalize, is_canonical_key
from .models import DappRegistration, DappReview, EnrichedDapp, ProjectStats
from .networks import NetworkOverrides, NetworkParameters

VERSION = "1.0.0"

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
_logger.setLevel(config.LOG_LEVEL)

__all__ = [
    "VERSION",
    "RateCaster",
    "ChainConnection",
    "TxHandle",
    "ReadPolicy",
    "BindingState",
    "SessionBinding",
    "NetworkParameters",
    "NetworkOverrides",
    "DappReview",
    "DappRegistration",
    "EnrichedDapp",
    "ProjectStats",
    "CategoryInfo",
    "resolve_category",
    "compute_stats",
    "canonicalize",
    "is_canonical_key",
    "RateCasterError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "RemoteError",
]
