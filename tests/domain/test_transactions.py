from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import pytest

from profilesync.domain.errors import ValidationError
from profilesync.domain.transactions import UnitOfWorkGateway
from tests.helpers.storage import ProfileState, build_fake_repositories

if TYPE_CHECKING:
    from types import TracebackType

    from profilesync.domain.ports.unit_of_work import ProfileRepositories


class RecordingUnitOfWork:
    def __init__(self, events: list[str]) -> None:
        self.events = events
        self._repositories = build_fake_repositories(ProfileState())

    @property
    def repositories(self) -> ProfileRepositories:
        return self._repositories

    def __enter__(self) -> RecordingUnitOfWork:
        self.events.append("enter")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.events.append("rollback")
        self.events.append("release")
        return False

    def commit(self) -> None:
        self.events.append("commit")

    def rollback(self) -> None:
        self.events.append("rollback")


def test_successful_work_commits_then_releases() -> None:
    events: list[str] = []
    gateway = UnitOfWorkGateway(lambda: RecordingUnitOfWork(events))

    assert gateway.run_in_transaction(lambda _: "done") == "done"
    assert events == ["enter", "commit", "release"]


def test_failing_work_rolls_back_and_propagates() -> None:
    events: list[str] = []
    gateway = UnitOfWorkGateway(lambda: RecordingUnitOfWork(events))

    def work(_: ProfileRepositories) -> None:
        raise ValidationError("nope")

    with pytest.raises(ValidationError):
        gateway.run_in_transaction(work)
    assert events == ["enter", "rollback", "release"]


def test_read_only_work_always_rolls_back() -> None:
    events: list[str] = []
    gateway = UnitOfWorkGateway(lambda: RecordingUnitOfWork(events))

    assert gateway.run_read_only(lambda repositories: repositories.profiles is not None)
    assert events == ["enter", "rollback", "release"]
