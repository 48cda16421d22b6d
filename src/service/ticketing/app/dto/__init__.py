from src.service.ticketing.app.dto.purchase_dto import (
    OrderWithTickets,
    PurchaseLine,
    PurchaseRequest,
    PurchaseResult,
)

__all__ = ['OrderWithTickets', 'PurchaseLine', 'PurchaseRequest', 'PurchaseResult']
