"""Reporting structures for CI runs."""

from __future__ import annotations

import dataclasses
from typing import List


@dataclasses.dataclass(slots=True)
class PhaseResult:
    name: str
    passed: bool

    @property
    def status(self) -> str:
        return "passed" if self.passed else "failed"


@dataclasses.dataclass(slots=True)
class CIReport:
    version: str
    phases: List[PhaseResult] = dataclasses.field(default_factory=list)

    def add(self, name: str, passed: bool) -> PhaseResult:
        result = PhaseResult(name=name, passed=passed)
        self.phases.append(result)
        return result

    @property
    def passed(self) -> bool:
        return all(phase.passed for phase in self.phases)

    @property
    def failed_phases(self) -> List[str]:
        return [phase.name for phase in self.phases if not phase.passed]

    def as_dict(self) -> dict:
        return {
            "version": self.version,
            "passed": self.passed,
            "phases": [{"name": phase.name, "status": phase.status} for phase in self.phases],
        }
