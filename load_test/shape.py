"""
Staged ramp profile for Locust.
"""

import math
from typing import List, Optional, Sequence, Tuple

from locust import LoadTestShape

from load_test import config


def build_stages(stages: Sequence[Tuple]) -> List[Tuple[float, int]]:
    """Normalise ``(duration, target)`` pairs to ``(seconds, users)``."""
    built = []
    for duration, target in stages:
        seconds = config.parse_duration(duration)
        if seconds <= 0:
            raise ValueError(f"Stage duration must be positive: {duration!r}")
        if target < 0:
            raise ValueError(f"Stage target must not be negative: {target!r}")
        built.append((seconds, int(target)))
    return built


class StagesShape(LoadTestShape):
    """
    Ramp linearly from one stage target to the next.

    Timeline (default profile):
        0–30s     0 → 10 users
        30–90s    10 → 50 users
        90–210s   hold 50 users
        210–240s  50 → 100 users
        240–300s  hold 100 users
        300–330s  100 → 0 users
        330s+     stop
    """

    stages = config.STAGES

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._stages = build_stages(self.stages)

    def target_at(self, run_time: float) -> Optional[Tuple[int, float]]:
        previous = 0
        elapsed = 0.0
        for seconds, target in self._stages:
            if run_time < elapsed + seconds:
                progress = (run_time - elapsed) / seconds
                users = round(previous + (target - previous) * progress)
                spawn_rate = max(1, math.ceil(abs(target - previous) / seconds))
                return (users, spawn_rate)
            previous = target
            elapsed += seconds
        return None

    def tick(self) -> Optional[Tuple[int, float]]:
        return self.target_at(self.get_run_time())

    def total_duration(self) -> float:
        return sum(seconds for seconds, _ in self._stages)

    def peak_users(self) -> int:
        return max((target for _, target in self._stages), default=0)
