"""
Proof backend lookup.

Backends are registered by name as ``module.Class`` import paths and only
imported when requested. The name comes from the caller, else from the
``CONSENSUS_ZK_BACKEND`` environment variable, else ``mock``.

WARNING: the mock backend gives no cryptographic guarantees.
"""

from __future__ import annotations

import importlib
import os
from typing import Final

from .interfaces import ProofBackend

BACKEND_ENV_VAR: Final[str] = "CONSENSUS_ZK_BACKEND"
DEFAULT_BACKEND: Final[str] = "mock"

BACKEND_REGISTRY: dict[str, str] = {
    "mock": f"{__package__}.adapters.mock_adapter.MockGroth16Backend",
}


def backend_name(prefer: str | None = None) -> str:
    """
    Registered backend name for a request.

    Raises:
        ValueError: If the requested or configured name is not registered.
    """
    name = prefer or os.getenv(BACKEND_ENV_VAR) or DEFAULT_BACKEND
    name = name.strip().lower()
    if name not in BACKEND_REGISTRY:
        raise ValueError(
            f"Unknown proof backend {name!r} "
            f"(registered: {', '.join(sorted(BACKEND_REGISTRY))})"
        )
    return name


def get_zk_backend(prefer: str | None = None) -> ProofBackend:
    """
    Instantiate the selected proof backend.

    Raises:
        ValueError: If the backend name is not registered.
        ImportError: If the backend module or class cannot be loaded.
        TypeError: If the registered class is not a ProofBackend.
    """
    name = backend_name(prefer)
    module_path, _, class_name = BACKEND_REGISTRY[name].rpartition(".")
    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(f"Unable to import backend {name!r} from {module_path}") from exc

    backend_cls = getattr(module, class_name, None)
    if backend_cls is None:
        raise ImportError(f"{module_path} has no backend class {class_name!r}")
    if not (isinstance(backend_cls, type) and issubclass(backend_cls, ProofBackend)):
        raise TypeError(f"{BACKEND_REGISTRY[name]} is not a ProofBackend")
    return backend_cls()
