from __future__ import annotations

"""Central logging configuration for structmd.

The library never configures logging on import. Hosts call
:func:`setup_logging` once at start-up.
"""

import logging
import logging.config
import os

from structmd.config import ConfigManager

__all__ = ["setup_logging"]

_TRUTHY = {"1", "true", "yes", "on"}
_SERVICES_LOGGER = "structmd.core.services"


def setup_logging() -> None:
    """Configure logging using the ``logging`` section of the YAML config."""
    log_dir = os.environ.get("STRUCTMD_LOG_DIR", "logs")
    log_file = os.path.join(log_dir, "structmd.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            logging_config = dict(logging_config)
            handlers = logging_config.get("handlers") or {}
            if "file" in handlers:
                os.makedirs(log_dir, exist_ok=True)
                handlers["file"] = dict(handlers["file"], filename=log_file)
                logging_config["handlers"] = handlers
            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except Exception as exc:
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up console-only logging when the config is unavailable."""
    minimal_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": "INFO",
            },
        },
        "root": {
            "level": "INFO",
            "handlers": ["console"],
        },
        # Present so STRUCTMD_DEBUG_EDITS can flip it in minimal mode too
        "loggers": {
            _SERVICES_LOGGER: {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False,
            }
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.warning("===== Logging initialised with minimal fallback =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - STRUCTMD_DEBUG_EDITS=true  -> DEBUG for the editing services
    - STRUCTMD_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    try:
        debug_edits = os.environ.get("STRUCTMD_DEBUG_EDITS", "").strip().lower() in _TRUTHY
        extra_modules = os.environ.get("STRUCTMD_DEBUG_MODULES", "").strip()
        targets = []
        if debug_edits:
            targets.append(_SERVICES_LOGGER)
            targets.append("structmd.core.invariants")
        if extra_modules:
            targets.extend([m.strip() for m in extra_modules.split(",") if m.strip()])
        if not targets:
            return
        for name in targets:
            logger = logging.getLogger(name)
            logger.setLevel(logging.DEBUG)
            # Ensure at least one handler emits DEBUG for this logger
            has_debug_handler = any(
                handler.level == logging.NOTSET or handler.level <= logging.DEBUG
                for handler in logger.handlers
            )
            if not has_debug_handler:
                handler = logging.StreamHandler()
                handler.setLevel(logging.DEBUG)
                handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
                logger.addHandler(handler)
            logger.info("Debug override active for logger '%s'", name)
    except Exception as exc:
        print(f"Warning: failed to apply debug overrides: {exc}")
