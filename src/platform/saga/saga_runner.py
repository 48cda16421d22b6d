"""
Saga runner: forward steps paired with compensations.

Each step is awaited in order. A successful step registers its compensation
bound to the step's result. When a later step fails the caller invokes
`compensate()`, which runs every registered compensation in reverse order.
A compensation that raises is logged and recorded; the remaining ones still run.

    saga = SagaRunner(name='purchase')
    try:
        order = await saga.step('create_order', create, compensation=cancel)
        payment = await saga.step('charge', charge, compensation=refund)
    except Exception as e:
        failures = await saga.compensate()
        ...
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

import attrs

from src.platform.logging.loguru_io import Logger


_T = TypeVar('_T')


class SagaStepStatus(StrEnum):
    EXECUTING = 'executing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    COMPENSATED = 'compensated'
    COMPENSATION_FAILED = 'compensation_failed'


@attrs.define
class SagaLogEntry:
    step: str
    status: SagaStepStatus
    timestamp: datetime
    error: Optional[str] = None


@attrs.define
class CompensationFailure:
    step: str
    error: Exception


@attrs.define
class _RegisteredCompensation(Generic[_T]):
    step: str
    result: _T
    compensation: Callable[[_T], Awaitable[Any]]


class SagaRunner:
    def __init__(self, *, name: str) -> None:
        self.name = name
        self.saga_log: list[SagaLogEntry] = []
        self._compensations: list[_RegisteredCompensation[Any]] = []
        self._compensated = False

    def _record(self, step: str, status: SagaStepStatus, error: Exception | None = None) -> None:
        self.saga_log.append(
            SagaLogEntry(
                step=step,
                status=status,
                timestamp=datetime.now(timezone.utc),
                error=f'{type(error).__name__}: {error}' if error else None,
            )
        )

    @property
    def completed_steps(self) -> list[str]:
        return [entry.step for entry in self.saga_log if entry.status == SagaStepStatus.COMPLETED]

    @property
    def failed_step(self) -> str | None:
        """Name of the most recent forward step that raised, if any."""
        for entry in reversed(self.saga_log):
            if entry.status == SagaStepStatus.FAILED:
                return entry.step
        return None

    async def step(
        self,
        name: str,
        action: Callable[[], Awaitable[_T]],
        *,
        compensation: Callable[[_T], Awaitable[Any]] | None = None,
    ) -> _T:
        if self._compensated:
            raise RuntimeError(f'Saga {self.name} already compensated')

        self._record(name, SagaStepStatus.EXECUTING)
        try:
            result = await action()
        except Exception as e:
            self._record(name, SagaStepStatus.FAILED, e)
            Logger.base.warning(f'⚠️ [SAGA:{self.name}] Step {name} failed: {e}')
            raise

        self._record(name, SagaStepStatus.COMPLETED)
        if compensation is not None:
            self._compensations.append(
                _RegisteredCompensation(step=name, result=result, compensation=compensation)
            )
        return result

    async def compensate(self) -> list[CompensationFailure]:
        """Undo completed steps newest-first. Runs at most once per saga."""
        if self._compensated:
            return []
        self._compensated = True

        failures: list[CompensationFailure] = []
        for registered in reversed(self._compensations):
            try:
                await registered.compensation(registered.result)
            except Exception as e:
                self._record(registered.step, SagaStepStatus.COMPENSATION_FAILED, e)
                Logger.base.error(
                    f'❌ [SAGA:{self.name}] Compensation for {registered.step} failed: '
                    f'{type(e).__name__}: {e}'
                )
                failures.append(CompensationFailure(step=registered.step, error=e))
            else:
                self._record(registered.step, SagaStepStatus.COMPENSATED)
                Logger.base.info(f'↩️ [SAGA:{self.name}] Compensated {registered.step}')

        self._compensations.clear()
        return failures
