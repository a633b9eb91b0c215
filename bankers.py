"""
Banker's algorithm for deadlock avoidance.

Holds the available vector and the per-process maximum/allocation
matrices, answers whether the current state is safe, and evaluates
resource requests by provisionally granting them and re-running the
safety check.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

logger = logging.getLogger(__name__)


class RequestExceedsNeed(ValueError):
    pass


class ResourcesUnavailable(ValueError):
    pass


@dataclass
class RequestOutcome:
    granted: bool
    sequence: List[int] = field(default_factory=list)


class BankersState:
    def __init__(self, available: List[int], maximum: List[List[int]], allocation: List[List[int]]):
        """
        Args:
            available: Free instances of each resource type
            maximum: maximum[i][j] is the most of resource j process i may hold
            allocation: allocation[i][j] is what process i holds now

        Raises:
            ValueError: If the shapes disagree, a value is negative, or a
                process holds more than its declared maximum
        """
        resources = len(available)
        if len(maximum) != len(allocation):
            raise ValueError("maximum and allocation must have one row per process")
        for i, (mx, al) in enumerate(zip(maximum, allocation)):
            if len(mx) != resources or len(al) != resources:
                raise ValueError(f"process {i}: expected {resources} resource columns")
            if any(a > m for a, m in zip(al, mx)):
                raise ValueError(f"process {i}: allocation exceeds maximum")
        if any(v < 0 for row in (available, *maximum, *allocation) for v in row):
            raise ValueError("resource counts must be non-negative")

        self.available = list(available)
        self.maximum = [list(row) for row in maximum]
        self.allocation = [list(row) for row in allocation]

    @property
    def process_count(self) -> int:
        return len(self.maximum)

    @property
    def resource_count(self) -> int:
        return len(self.available)

    @property
    def need(self) -> List[List[int]]:
        return [[m - a for m, a in zip(mx, al)] for mx, al in zip(self.maximum, self.allocation)]

    def is_safe(self) -> Tuple[bool, List[int]]:
        """
        Safety algorithm.

        Repeatedly sweeps the processes in index order, finishing any whose
        need fits in the work vector and returning its allocation to it.

        Returns:
            (safe, sequence): sequence is the order processes finish in, or
            an empty list when the state is unsafe
        """
        work = list(self.available)
        need = self.need
        finish = [False] * self.process_count
        sequence = []

        proceed = True
        while proceed:
            proceed = False
            for i in range(self.process_count):
                if not finish[i] and all(n <= w for n, w in zip(need[i], work)):
                    work = [w + a for w, a in zip(work, self.allocation[i])]
                    finish[i] = True
                    sequence.append(i)
                    proceed = True

        if all(finish):
            return True, sequence
        return False, []

    def request(self, pid: int, request: List[int]) -> RequestOutcome:
        """
        Resource-request algorithm.

        The request is granted and committed only if the state after a
        provisional allocation is safe; otherwise the state is unchanged.

        Raises:
            RequestExceedsNeed: If the request is larger than the remaining need
            ResourcesUnavailable: If the request is larger than what is available
        """
        if not 0 <= pid < self.process_count:
            raise IndexError(f"No process P{pid}")
        if len(request) != self.resource_count or any(r < 0 for r in request):
            raise ValueError("request must list a non-negative count per resource")

        need = self.need[pid]
        if any(r > n for r, n in zip(request, need)):
            raise RequestExceedsNeed("Request exceeds the process's needs.")
        if any(r > a for r, a in zip(request, self.available)):
            raise ResourcesUnavailable("Not enough resources available.")

        trial = copy.deepcopy(self)
        trial.available = [a - r for a, r in zip(trial.available, request)]
        trial.allocation[pid] = [a + r for a, r in zip(trial.allocation[pid], request)]

        safe, sequence = trial.is_safe()
        if not safe:
            logger.info("Denied P%s request %s: unsafe state", pid, request)
            return RequestOutcome(False)

        self.available = trial.available
        self.allocation = trial.allocation
        logger.info("Granted P%s request %s, safe sequence %s", pid, request, sequence)
        return RequestOutcome(True, sequence)
