from abc import ABC, abstractmethod
from typing import Any


class MessagePlatformPort(ABC):
    @abstractmethod
    def send_reply(self, response_url: str, message: dict[str, Any]) -> None:
        raise NotImplementedError
