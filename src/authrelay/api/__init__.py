# authrelay HTTP layer.
# Created: 2026-10-05
#
# mount_routers(app) registers the OAuth relay, registration and health
# routers at the application root.

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

_ROUTERS: list[tuple[str, str]] = [
    # (module_path, attr_name)
    ("authrelay.api.health", "router"),
    ("authrelay.api.oauth", "router"),
    ("authrelay.api.register", "router"),
]


def mount_routers(app: FastAPI) -> None:
    """Mount every router on *app*. Import errors propagate; a missing route is a bug."""
    import importlib

    for module_path, attr_name in _ROUTERS:
        mod = importlib.import_module(module_path)
        app.include_router(getattr(mod, attr_name))
        logger.debug("Mounted router: %s", module_path)
