"""Client side of validation: local rule subset, service client and the coordinator.

Usage:
    async with ValidationServiceClient() as client:
        coordinator = DualValidationCoordinator(client)
        status = await coordinator.submit({"model": "B", "size": "M", "color": "blue"})
"""

from configurator.client.coordinator import DualValidationCoordinator, ValidationStatus
from configurator.client.local_rules import LOCAL_RULES
from configurator.client.transport import ValidationServiceClient

__all__ = [
    "DualValidationCoordinator",
    "LOCAL_RULES",
    "ValidationServiceClient",
    "ValidationStatus",
]
