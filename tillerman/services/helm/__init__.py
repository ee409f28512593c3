"""Release backend: helm 2 CLI and Tiller release records."""

from .client import TILLER_NAMESPACE_ENV, CliHelm, HelmClient
from .history import ReleaseStatus, is_release_not_found, parse_last_release_status
from .storage import parse_record_name, record_name, release_names
from .tiller import build_init_args, init_helm

__all__ = [
    "CliHelm",
    "HelmClient",
    "ReleaseStatus",
    "TILLER_NAMESPACE_ENV",
    "build_init_args",
    "init_helm",
    "is_release_not_found",
    "parse_last_release_status",
    "parse_record_name",
    "record_name",
    "release_names",
]
