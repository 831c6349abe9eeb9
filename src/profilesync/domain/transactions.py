"""Storage gateway built on top of a unit-of-work factory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from profilesync.domain.ports.unit_of_work import ProfileRepositories, ProfileUnitOfWork


@dataclass(slots=True)
class UnitOfWorkGateway:
    """Run callbacks inside a fresh unit of work each time.

    The unit of work owns connection checkout, rollback on failure and release; this
    class only decides between commit and unconditional rollback.
    """

    unit_of_work_factory: Callable[[], ProfileUnitOfWork]

    def run_in_transaction[T](self, work: Callable[[ProfileRepositories], T]) -> T:
        with self.unit_of_work_factory() as uow:
            result = work(uow.repositories)
            uow.commit()
        return result

    def run_read_only[T](self, work: Callable[[ProfileRepositories], T]) -> T:
        with self.unit_of_work_factory() as uow:
            try:
                return work(uow.repositories)
            finally:
                uow.rollback()


if TYPE_CHECKING:
    from profilesync.domain.ports.unit_of_work import StorageGateway

    _gateway_check: StorageGateway = UnitOfWorkGateway(lambda: NotImplemented)
