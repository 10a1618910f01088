from __future__ import annotations

import abc
from typing import Dict, Optional, Type

from ..results import ClassifiedResults, ReconCheckResult, StagedInventory


class CheckRegistry:
    """Registry of available integrity checks."""

    def __init__(self) -> None:
        self._by_type: Dict[str, Type["ReconCheck"]] = {}

    def register(self, check_cls: Type["ReconCheck"]) -> None:
        check_type = check_cls.type_name()
        self._by_type[check_type] = check_cls

    def get(self, check_type: str) -> Optional[Type["ReconCheck"]]:
        return self._by_type.get(check_type.strip().lower())

    def all(self) -> Dict[str, Type["ReconCheck"]]:
        return dict(self._by_type)


registry = CheckRegistry()


class ReconCheck(abc.ABC):
    """Base class for checks run against the classified results of one run."""

    # Required checks run on every reconciliation, whatever subset was selected.
    required = False

    def __init__(self, results: ClassifiedResults, staged: StagedInventory) -> None:
        self.results = results
        self.staged = staged

    @classmethod
    def type_name(cls) -> str:
        return getattr(cls, "_TYPE", cls.__name__.lower())

    def run(self) -> ReconCheckResult:
        try:
            outcome = self._execute()
        except Exception as exc:  # pragma: no cover - reported as an error result
            return ReconCheckResult(
                check_name=self.type_name(),
                check_type=self.type_name(),
                status="error",
                detail=str(exc),
            )
        outcome.check_type = self.type_name()
        outcome.check_name = self.type_name()
        return outcome

    @abc.abstractmethod
    def _execute(self) -> ReconCheckResult:
        ...
