# solver/schedules.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Union

import numpy as np


@dataclass(frozen=True)
class AnnealingSchedule:
    """
    Interpolation of the annealing Hamiltonian over s in [0, 1]:

        H(s) = A(s) * H_driver + B(s) * H_problem

    A is expected to go from 1 to 0 and B from 0 to 1.
    """
    A: Callable[[float], float]
    B: Callable[[float], float]
    name: str = "custom"


AS_LINEAR = AnnealingSchedule(A=lambda s: 1.0 - s, B=lambda s: s, name="linear")
AS_QUADRATIC = AnnealingSchedule(A=lambda s: (1.0 - s) ** 2, B=lambda s: s**2, name="quadratic")
AS_CIRCULAR = AnnealingSchedule(
    A=lambda s: float(np.cos(np.pi * s / 2.0)),
    B=lambda s: float(np.sin(np.pi * s / 2.0)),
    name="circular",
)

SCHEDULES: Dict[str, AnnealingSchedule] = {
    schedule.name: schedule for schedule in (AS_LINEAR, AS_QUADRATIC, AS_CIRCULAR)
}

ScheduleLike = Union[str, AnnealingSchedule]


def get_schedule(schedule: ScheduleLike) -> AnnealingSchedule:
    if isinstance(schedule, AnnealingSchedule):
        return schedule
    try:
        return SCHEDULES[schedule]
    except (KeyError, TypeError):
        raise ValueError(
            f"Unknown annealing schedule {schedule!r}; expected one of "
            f"{sorted(SCHEDULES)} or an AnnealingSchedule."
        ) from None
