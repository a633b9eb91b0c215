"""Tests for round robin and disk-head scheduling."""

import pytest

from scheduling import DISK_ALGORITHMS, GanttSlice, Process, round_robin, schedule_disk

REQUESTS = [98, 183, 37, 122, 14, 124, 65, 67]
HEAD = 53


class TestRoundRobin:
    """Verify the Gantt chart and averages."""

    def test_quantum_two(self) -> None:
        """Processes take turns in list order for at most two units."""
        procs = [Process("P1", 0, 5), Process("P2", 1, 3), Process("P3", 2, 1), Process("P4", 3, 2)]
        result = round_robin(procs, quantum=2)

        assert [(s.pid, s.start, s.end) for s in result.gantt] == [
            ("P1", 0, 2), ("P2", 2, 4), ("P3", 4, 5), ("P4", 5, 7),
            ("P1", 7, 9), ("P2", 9, 10), ("P1", 10, 11),
        ]
        assert result.completion == {"P1": 11, "P2": 10, "P3": 5, "P4": 7}
        assert result.avg_turnaround_time == 6.75
        assert result.avg_wait_time == 4.0

    def test_idle_until_first_arrival(self) -> None:
        """The CPU idles one unit at a time until something arrives."""
        result = round_robin([Process("P1", 2, 1)], quantum=1)
        assert result.gantt == [GanttSlice(None, 0, 1), GanttSlice(None, 1, 2), GanttSlice("P1", 2, 3)]
        assert result.gantt[0].is_idle
        assert result.avg_wait_time == 0.0

    def test_empty_process_list(self) -> None:
        """No processes means an empty chart."""
        assert round_robin([], quantum=3).gantt == []

    def test_invalid_input(self) -> None:
        """Quantum and bursts must be positive."""
        with pytest.raises(ValueError):
            round_robin([Process("P1", 0, 1)], quantum=0)
        with pytest.raises(ValueError):
            round_robin([Process("P1", 0, 0)], quantum=1)


class TestDiskScheduling:
    """Verify head paths and seek totals on the textbook queue."""

    @pytest.mark.parametrize("algorithm,seek", [
        ("FCFS", 640),
        ("SSTF", 236),
        ("SCAN", 331),
        ("CSCAN", 382),
        ("LOOK", 299),
        ("CLOOK", 322),
    ])
    def test_total_seek(self, algorithm, seek) -> None:
        """Each algorithm's total head movement for head 53."""
        result = schedule_disk(algorithm, REQUESTS, HEAD)
        assert result.total_seek == seek
        assert result.head_movement[0] == HEAD
        assert set(REQUESTS) <= set(result.head_movement)

    def test_sstf_path(self) -> None:
        """SSTF always moves to the nearest pending cylinder."""
        result = schedule_disk("SSTF", REQUESTS, HEAD)
        assert result.head_movement == [53, 65, 67, 37, 14, 98, 122, 124, 183]

    def test_scan_goes_to_edge_before_reversing(self) -> None:
        """SCAN touches the last cylinder before turning around."""
        result = schedule_disk("SCAN", REQUESTS, HEAD)
        assert result.head_movement == [53, 65, 67, 98, 122, 124, 183, 199, 37, 14]

    def test_scan_down(self) -> None:
        """Moving down first visits cylinder 0 before the upper requests."""
        result = schedule_disk("SCAN", REQUESTS, HEAD, direction="down")
        assert result.head_movement[:4] == [53, 37, 14, 0]
        assert result.total_seek == 53 + 183

    def test_c_scan_wraps_to_zero(self) -> None:
        """C-SCAN jumps back to cylinder 0 and keeps moving up."""
        result = schedule_disk("CSCAN", REQUESTS, HEAD)
        assert result.head_movement[-4:] == [199, 0, 14, 37]

    def test_movement_actions(self) -> None:
        """Each step is labelled with the head's direction."""
        result = schedule_disk("FCFS", [60, 60, 10], 50)
        assert result.movement_actions() == ["Start", "Moving right", "Processing", "Moving left"]

    def test_invalid_input(self) -> None:
        """Unknown algorithms, directions and cylinders are rejected."""
        with pytest.raises(ValueError):
            schedule_disk("RANDOM", REQUESTS, HEAD)
        with pytest.raises(ValueError):
            schedule_disk("SCAN", REQUESTS, HEAD, direction="left")
        with pytest.raises(ValueError):
            schedule_disk("FCFS", [250], HEAD)

    @pytest.mark.parametrize("name", sorted(DISK_ALGORITHMS))
    def test_direct_call_rejects_bad_direction(self, name) -> None:
        """Each algorithm checks the direction itself, not only the dispatcher."""
        with pytest.raises(ValueError, match="direction"):
            DISK_ALGORITHMS[name](REQUESTS, HEAD, 200, "left")
