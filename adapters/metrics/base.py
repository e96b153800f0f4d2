from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

SeedStatus = Literal["ok", "partial", "error"]
RowOutcome = Literal["generated", "inserted", "rejected"]


class Metrics(ABC):
    @abstractmethod
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None: ...

    @abstractmethod
    def inc_seed_run(self, *, status: SeedStatus) -> None: ...

    @abstractmethod
    def inc_stage_call(self, *, stage: str, ok: bool) -> None: ...

    @abstractmethod
    def inc_stage_error(self, *, stage: str, error_code: str) -> None: ...

    @abstractmethod
    def inc_recovery_repair(self, *, kind: str) -> None: ...

    @abstractmethod
    def add_rows(self, *, table: str, outcome: RowOutcome, count: int) -> None: ...
