"""Global service registry and initialization manager.

This module acts as a singleton container for the process-wide sanitizer. It
reads the active `policy` and the ambient parser setting once, so a broken
deployment is reported at startup rather than on the first request.

Architecture Note:
    - The engine itself holds no per-call state; one instance serves every
      caller, including concurrent ones.
    - `get_sanitizer()` initializes lazily for library users that never call
      `initialize_services()` explicitly.
"""

import logging

from markupguard.app.config import settings
from markupguard.app.policy import policy
from markupguard.engines.document_engine import ambient_builder
from markupguard.engines.sanitizer_engine import SanitizerEngine

logger = logging.getLogger("markupguard.services")

# Global Instance
# Populated by initialize_services() or on first use.
sanitizer_service = None


def initialize_services(check_parser: bool = False) -> SanitizerEngine:
    """Bootstraps the default sanitizer from the active policy.

    Args:
        check_parser (bool): Also verify that the ambient tree builder named by
            `MARKUPGUARD_PARSER` is installed.

    Raises:
        ConfigurationError: If `check_parser` is set and the ambient parser is
            unavailable.
    """
    global sanitizer_service

    logger.info("⚡ Initializing SanitizerEngine...")
    engine = SanitizerEngine(policy)

    if check_parser:
        ambient_builder()
        logger.info(f"✅ Ambient parser '{settings.MARKUPGUARD_PARSER}': Ready")

    sanitizer_service = engine
    logger.info("✅ SanitizerEngine: Ready")
    return engine


def get_sanitizer() -> SanitizerEngine:
    """Returns the shared engine, creating it on first use."""
    if sanitizer_service is None:
        return initialize_services()
    return sanitizer_service
