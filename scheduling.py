"""
CPU and disk-head scheduling.

Round robin produces a Gantt chart for a process set; the disk schedulers
produce the sequence of cylinders the head visits and the total seek
distance.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# ROUND ROBIN
# =============================================================================

@dataclass
class Process:
    pid: str
    arrival_time: int
    burst_time: int


@dataclass(frozen=True)
class GanttSlice:
    pid: Optional[str]  # None while the CPU is idle
    start: int
    end: int

    @property
    def is_idle(self):
        return self.pid is None


@dataclass
class RoundRobinResult:
    gantt: List[GanttSlice] = field(default_factory=list)
    completion: Dict[str, int] = field(default_factory=dict)
    avg_wait_time: float = 0.0
    avg_turnaround_time: float = 0.0


def round_robin(processes: List[Process], quantum: int = 1) -> RoundRobinResult:
    """
    Run round robin over the processes in list order.

    The scheduler cycles an index through the list. A process that has
    arrived and still has work runs for ``min(remaining, quantum)``; when
    nothing has arrived yet the CPU idles for one time unit.
    """
    if quantum < 1:
        raise ValueError("quantum must be at least 1")
    for p in processes:
        if p.burst_time <= 0 or p.arrival_time < 0:
            raise ValueError(f"process {p.pid}: burst must be positive and arrival non-negative")

    result = RoundRobinResult()
    if not processes:
        return result

    remaining = {p.pid: p.burst_time for p in processes}
    time = 0
    index = 0
    while len(result.completion) < len(processes):
        p = processes[index]
        if p.arrival_time <= time and remaining[p.pid] > 0:
            run = min(remaining[p.pid], quantum)
            result.gantt.append(GanttSlice(p.pid, time, time + run))
            remaining[p.pid] -= run
            time += run
            if remaining[p.pid] == 0:
                result.completion[p.pid] = time
        elif not any(q.arrival_time <= time and remaining[q.pid] > 0 for q in processes):
            result.gantt.append(GanttSlice(None, time, time + 1))
            time += 1
            continue
        index = (index + 1) % len(processes)

    turnaround = [result.completion[p.pid] - p.arrival_time for p in processes]
    waiting = [t - p.burst_time for t, p in zip(turnaround, processes)]
    result.avg_turnaround_time = round(sum(turnaround) / len(processes), 2)
    result.avg_wait_time = round(sum(waiting) / len(processes), 2)
    logger.debug("Round robin q=%s finished at t=%s", quantum, time)
    return result


# =============================================================================
# DISK SCHEDULING
# =============================================================================

@dataclass
class DiskResult:
    head_movement: List[int]
    total_seek: int

    def movement_actions(self) -> List[str]:
        actions = []
        for i, pos in enumerate(self.head_movement):
            if i == 0:
                actions.append("Start")
            elif pos == self.head_movement[i - 1]:
                actions.append("Processing")
            elif pos > self.head_movement[i - 1]:
                actions.append("Moving right")
            else:
                actions.append("Moving left")
        return actions


def _result(path):
    seek = sum(abs(b - a) for a, b in zip(path, path[1:]))
    return DiskResult(path, seek)


def _check(requests, head, disk_size, direction):
    if direction not in ("up", "down"):
        raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")
    if disk_size <= 0:
        raise ValueError("disk_size must be positive")
    for cyl in [head, *requests]:
        if not 0 <= cyl < disk_size:
            raise ValueError(f"cylinder {cyl} outside 0..{disk_size - 1}")


def fcfs(requests, head, disk_size=200, direction="up"):
    _check(requests, head, disk_size, direction)
    return _result([head, *requests])


def sstf(requests, head, disk_size=200, direction="up"):
    _check(requests, head, disk_size, direction)
    pending = list(requests)
    path = [head]
    while pending:
        # ties go to the request listed first
        nearest = min(pending, key=lambda r: abs(r - path[-1]))
        pending.remove(nearest)
        path.append(nearest)
    return _result(path)


def _sides(requests, head):
    lower = sorted((r for r in requests if r < head), reverse=True)
    upper = sorted(r for r in requests if r >= head)
    return lower, upper


def scan(requests, head, disk_size=200, direction="up"):
    _check(requests, head, disk_size, direction)
    lower, upper = _sides(requests, head)
    if direction == "up":
        path = [head, *upper]
        if lower:
            if path[-1] != disk_size - 1:
                path.append(disk_size - 1)
            path.extend(lower)
    else:
        path = [head, *lower]
        if upper:
            if path[-1] != 0:
                path.append(0)
            path.extend(upper)
    return _result(path)


def c_scan(requests, head, disk_size=200, direction="up"):
    _check(requests, head, disk_size, direction)
    lower, upper = _sides(requests, head)
    if direction == "up":
        path = [head, *upper]
        if lower:
            if path[-1] != disk_size - 1:
                path.append(disk_size - 1)
            path.append(0)
            path.extend(reversed(lower))
    else:
        path = [head, *lower]
        if upper:
            if path[-1] != 0:
                path.append(0)
            path.append(disk_size - 1)
            path.extend(reversed(upper))
    return _result(path)


def look(requests, head, disk_size=200, direction="up"):
    _check(requests, head, disk_size, direction)
    lower, upper = _sides(requests, head)
    if direction == "up":
        return _result([head, *upper, *lower])
    return _result([head, *lower, *upper])


def c_look(requests, head, disk_size=200, direction="up"):
    _check(requests, head, disk_size, direction)
    lower, upper = _sides(requests, head)
    if direction == "up":
        return _result([head, *upper, *reversed(lower)])
    return _result([head, *lower, *reversed(upper)])


DISK_ALGORITHMS = {
    "FCFS": fcfs,
    "SSTF": sstf,
    "SCAN": scan,
    "CSCAN": c_scan,
    "LOOK": look,
    "CLOOK": c_look,
}

DISK_TITLES = {
    "FCFS": "First-Come, First-Served",
    "SSTF": "Shortest Seek Time First",
    "SCAN": "SCAN (Elevator Algorithm)",
    "CSCAN": "Circular SCAN",
    "LOOK": "LOOK Algorithm",
    "CLOOK": "Circular LOOK",
}


def schedule_disk(algorithm, requests, head, disk_size=200, direction="up"):
    try:
        fn = DISK_ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(f"Unknown disk algorithm {algorithm!r}") from None
    return fn(list(requests), head, disk_size, direction)
