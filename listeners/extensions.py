"""
Listener Extensions.

Extensions handle trigger kinds the core listener does not poll itself.
They are registered explicitly when the Listener is built; there is no
discovery or dynamic loading.

An extension claims triggers through map_trigger and is started and
stopped together with the listener's queue timers.

Exports:
    ListenerExtension: Capability interface
    default_extensions: The extensions shipped with this package
"""

from abc import ABC, abstractmethod
from typing import List

from core.models import PollContext


class ListenerExtension(ABC):
    """
    Fixed capability interface for listener plugins.
    """

    name: str = "extension"

    @abstractmethod
    def map_trigger(self, trigger) -> bool:
        """Claim a trigger; return False if this extension does not handle its type"""
        pass

    @abstractmethod
    def start_polling(self, context: PollContext) -> None:
        pass

    @abstractmethod
    def stop_polling(self) -> None:
        pass

    def get_status(self) -> dict:
        return {"name": self.name}


def default_extensions(invoker, config=None) -> List[ListenerExtension]:
    """
    Build the shipped extensions for an invoker.

    Args:
        invoker: ITriggerInvoke shared with the core listener
        config: Optional AppConfig (defaults to get_config())
    """
    from config import get_config
    from infrastructure.factory import RepositoryFactory
    from .service_bus_extension import ServiceBusExtension

    config = config or get_config()
    return [
        ServiceBusExtension(
            invoker=invoker,
            client_provider=RepositoryFactory.create_service_bus_client_provider(config),
            config=config.service_bus,
        )
    ]
