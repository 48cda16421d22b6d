import attrs


@attrs.define(frozen=True)
class TicketSelection:
    ticket_type_id: int
    quantity: int
