"""
Service Factory
Centralizes wiring of the engagement service to its adapters.
"""

from tether.application.config import AppConfig
from tether.application.service import EngagementService
from tether.domain.ports import Clock, FriendRepository
from tether.infrastructure.adapters.json_store import JsonFileRepository
from tether.infrastructure.clock import StaticEntitlement, SystemClock


def get_repository(config: AppConfig) -> FriendRepository:
    """
    Returns the FriendRepository backing the configured data file.
    """
    return JsonFileRepository(config.data_file)


async def get_engagement_service(
    config: AppConfig,
    repository: FriendRepository | None = None,
    clock: Clock | None = None,
) -> EngagementService:
    """
    Build an EngagementService and load the roster from persistence.
    """
    service = EngagementService(
        repository=repository or get_repository(config),
        clock=clock or SystemClock(),
        entitlement=StaticEntitlement(config.premium),
        config=config,
    )
    await service.load()
    return service
