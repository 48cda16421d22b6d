from abc import ABC, abstractmethod

from uuid_utils import UUID


class IQrCodeGenerator(ABC):
    @abstractmethod
    def generate(self, *, order_id: UUID, ticket_type_id: int) -> str:
        """
        Unique, unguessable token identifying one ticket

        Raises:
            IssuanceError(TICKET_ISSUANCE_FAILED): Randomness source failed
        """
        pass
