"""Erzeugt das konfigurierte SimulatorBackend."""

import logging

from config.schema import BackendKind, SimulatorConfig
from solver.backend import SimulatorBackend

logger = logging.getLogger(__name__)


def create_backend(config: SimulatorConfig) -> SimulatorBackend:
    """http → HttpSimulatorBackend, local → LocalSimulatorBackend."""
    if config.backend.kind == BackendKind.HTTP:
        from solver.http_backend import HttpSimulatorBackend
        logger.debug(f"HTTP-Backend: {config.backend.base_url}{config.backend.api_prefix}")
        return HttpSimulatorBackend(config.backend)

    from solver.local_backend import LocalSimulatorBackend
    logger.debug("Lokales CP-SAT-Backend")
    return LocalSimulatorBackend(config.backend, seed=config.generator.seed)
