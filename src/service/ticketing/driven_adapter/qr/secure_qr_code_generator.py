from datetime import datetime, timezone
import secrets

from uuid_utils import UUID

from src.service.ticketing.app.interface.i_qr_code_generator import IQrCodeGenerator
from src.service.ticketing.domain.error.ticketing_errors import (
    IssuanceError,
    TicketingErrorCode,
)


TOKEN_ENTROPY_BYTES = 16


class SecureQrCodeGenerator(IQrCodeGenerator):
    """TKT-{order}-{ticket type}-{unix seconds}-{32 hex chars of CSPRNG output}"""

    def generate(self, *, order_id: UUID, ticket_type_id: int) -> str:
        try:
            entropy = secrets.token_hex(TOKEN_ENTROPY_BYTES)
        except OSError as e:
            raise IssuanceError(
                TicketingErrorCode.TICKET_ISSUANCE_FAILED,
                f'Could not generate ticket token: {e}',
            ) from e
        timestamp = int(datetime.now(timezone.utc).timestamp())
        return f'TKT-{order_id}-{ticket_type_id}-{timestamp}-{entropy}'
