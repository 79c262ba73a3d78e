"""Canonical stage taxonomy helpers for wiptrack."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from .entry import OTHER_STAGE

__all__ = [
    "Department",
    "Stage",
    "PROSES",
    "STAGE_PRIORITY",
    "CONDENSED_STAGES",
    "CONDENSED_ORDER",
    "EXIT_STEPS",
    "QA_DOCUMENT_STEPS",
    "UNKNOWN_PRIORITY",
    "QUEUE_LEVELS",
    "ClockPolicy",
    "QueueThresholds",
    "StageKey",
    "StageRule",
    "StageTaxonomy",
    "DEFAULT_TAXONOMY",
    "queue_level",
]


class Department(str, Enum):
    PN1 = "PN1"
    PN2 = "PN2"

    @classmethod
    def parse(cls, value: str) -> Optional["Department"]:
        try:
            return cls(value)
        except ValueError:
            return None


class Stage(str, Enum):
    """Raw stage groups emitted by the tracking system."""

    TIMBANG = "Timbang"
    MIXING = "Mixing"
    GRANULASI = "Granulasi"
    CETAK = "Cetak"
    FILLING = "Filling"
    COATING = "Coating"
    KEMAS_PRIMER = "Kemas Primer"
    KEMAS_SEKUNDER = "Kemas Sekunder"
    QC = "QC"
    MIKRO = "Mikro"
    QA = "QA"


PROSES = "Proses"
UNKNOWN_PRIORITY = 999

STAGE_PRIORITY: Dict[str, int] = {stage.value: index for index, stage in enumerate(Stage, start=1)}

CONDENSED_STAGES: Dict[str, str] = {
    Stage.TIMBANG.value: Stage.TIMBANG.value,
    Stage.MIXING.value: PROSES,
    Stage.FILLING.value: PROSES,
    Stage.GRANULASI.value: PROSES,
    Stage.CETAK.value: PROSES,
    Stage.COATING.value: PROSES,
    Stage.KEMAS_PRIMER.value: Stage.KEMAS_PRIMER.value,
    Stage.KEMAS_SEKUNDER.value: Stage.KEMAS_SEKUNDER.value,
    Stage.QC.value: Stage.QC.value,
    Stage.MIKRO.value: Stage.MIKRO.value,
    Stage.QA.value: Stage.QA.value,
}

CONDENSED_ORDER: Tuple[str, ...] = (
    Stage.TIMBANG.value,
    PROSES,
    Stage.KEMAS_PRIMER.value,
    Stage.KEMAS_SEKUNDER.value,
    Stage.QC.value,
    Stage.MIKRO.value,
    Stage.QA.value,
)

# The step name is spelled this way in the source system.
EXIT_STEPS: FrozenSet[str] = frozenset({"Approve Realese"})

QA_DOCUMENT_STEPS: Tuple[str, ...] = (
    "Cek Dokumen PC oleh QA",
    "Cek Dokumen PN oleh QA",
    "Cek Dokumen MC oleh QA",
    "Cek Dokumen QC oleh QA",
)

QUEUE_LEVELS: Tuple[str, ...] = (
    "clear",
    "low",
    "light",
    "moderate",
    "elevated",
    "high",
    "severe",
    "critical",
)


class StageKey(NamedTuple):
    """Composite grouping key: department, product scope and stage."""

    department: str
    scope: str
    stage: str


class ClockPolicy(str, Enum):
    EARLIEST = "earliest"
    LATEST = "latest"


@dataclass(frozen=True)
class StageRule:
    """Stage specific gating and clock selection.

    When ``required_steps`` is set, a batch only counts for the stage once
    every required step has been queued, and the clock is taken from those
    steps only.
    """

    required_steps: Tuple[str, ...] = ()
    clock: ClockPolicy = ClockPolicy.EARLIEST

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> "StageRule":
        steps = payload.get("required_steps") or ()
        clock = payload.get("clock") or ClockPolicy.EARLIEST.value
        return cls(
            required_steps=tuple(str(step) for step in steps),  # type: ignore[attr-defined]
            clock=clock if isinstance(clock, ClockPolicy) else ClockPolicy(str(clock)),
        )


@dataclass(frozen=True)
class QueueThresholds:
    min: int = 5
    med: int = 10
    max: int = 15


def queue_level(count: int, thresholds: QueueThresholds | None = None) -> str:
    """Return the queue intensity band for *count* batches waiting in a stage."""

    t = thresholds or QueueThresholds()
    if count <= 0:
        return "clear"
    bounds = (
        t.min / 2,
        t.min,
        (t.min + t.med) / 2,
        t.med,
        (t.med + t.max) / 2,
        t.max,
    )
    for level, bound in zip(QUEUE_LEVELS[1:], bounds):
        if count <= bound:
            return level
    return QUEUE_LEVELS[-1]


@dataclass(frozen=True)
class StageTaxonomy:
    """Static stage tables consulted by the aggregator."""

    priority: Mapping[str, int] = field(default_factory=lambda: dict(STAGE_PRIORITY))
    condensed: Mapping[str, str] = field(default_factory=lambda: dict(CONDENSED_STAGES))
    condensed_order: Tuple[str, ...] = CONDENSED_ORDER
    exit_steps: FrozenSet[str] = EXIT_STEPS
    other_stage: str = OTHER_STAGE
    rules: Mapping[str, StageRule] = field(default_factory=dict)
    thresholds: Mapping[str, QueueThresholds] = field(default_factory=dict)
    default_thresholds: QueueThresholds = QueueThresholds()

    def priority_of(self, stage: str) -> int:
        return self.priority.get(stage, UNKNOWN_PRIORITY)

    def category_of(self, stage: str) -> Optional[str]:
        return self.condensed.get(stage)

    def members_of(self, category: str) -> List[str]:
        return [stage for stage, cat in self.condensed.items() if cat == category]

    def rule_for(self, stage: str) -> Optional[StageRule]:
        return self.rules.get(stage)

    def thresholds_for(self, stage: str) -> QueueThresholds:
        return self.thresholds.get(stage, self.default_thresholds)

    def stages(self) -> List[str]:
        return sorted(self.priority, key=lambda s: (self.priority_of(s), s))

    def order_stages(self, stages: Iterable[str]) -> List[str]:
        return sorted(set(stages), key=lambda s: (self.priority_of(s), s))


DEFAULT_TAXONOMY = StageTaxonomy()
