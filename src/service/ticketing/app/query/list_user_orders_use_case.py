from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_order_repo import IOrderRepo
from src.service.ticketing.domain.entity.order_entity import Order
from src.service.ticketing.domain.error.ticketing_errors import AccessDeniedError
from src.service.ticketing.domain.value_object.requester import Requester


class ListUserOrdersUseCase:
    def __init__(self, *, order_repo: IOrderRepo) -> None:
        self.order_repo = order_repo

    @classmethod
    @inject
    def depends(cls, order_repo: IOrderRepo = Depends(Provide[Container.order_repo])) -> Self:
        return cls(order_repo=order_repo)

    @Logger.io
    async def list_user_orders(self, *, user_id: int, requester: Requester) -> list[Order]:
        if not requester.can_access(user_id):
            raise AccessDeniedError("Cannot list another user's orders")
        return await self.order_repo.list_by_user(user_id=user_id)
