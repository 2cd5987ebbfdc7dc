from abc import ABC, abstractmethod


class NotificationSinkPort(ABC):
    @abstractmethod
    def send(self, recipient_id: str, title: str, message: str, severity: str = "info") -> None:
        raise NotImplementedError
