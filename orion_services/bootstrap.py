"""
Process bootstrap: apply an OrionConfig to the kernel's process-wide state.

Call once at process start (web worker, CLI, batch job) before building
services.  Sessions for ``DashboardService`` then come from
``orion_kernel.db.engine.session_scope()``::

    config = bootstrap()
    with session_scope() as session:
        report = DashboardService(session, config=config).portfolio(tenant_id)
"""

from __future__ import annotations

import logging

from orion_config import get_active_config
from orion_config.schema import OrionConfig
from orion_kernel.db.engine import init_engine_from_url
from orion_kernel.logging_config import LOGGER_ROOT, configure_logging, get_logger

logger = get_logger("services.bootstrap")


def bootstrap(config: OrionConfig | None = None) -> OrionConfig:
    """
    Configure logging and the database engine from ``config``.

    Without ``config`` the active configuration is loaded through
    ``get_active_config()``.  The configured level is applied even when
    logging was already set up.  The engine is initialized only when
    ``database.url`` is set.
    """
    config = config or get_active_config()

    configure_logging(level=config.logging.level)
    logging.getLogger(LOGGER_ROOT).setLevel(config.logging.level)

    if config.database.url:
        init_engine_from_url(
            config.database.url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
        )

    logger.info("orion_bootstrapped", extra={
        "log_level": config.logging.level,
        "database_configured": bool(config.database.url),
        "currency": config.presentation.currency,
    })
    return config
