"""Tests for Clock page replacement and the process table.

The pager keeps a fixed circle of frames with reference bits. A hit only
sets the bit; a miss sweeps the hand, clearing bits that are set, and
replaces the first frame whose bit is already clear.
"""

import pytest

from paging import (
    ClockConfig,
    ClockPager,
    InvalidFrameCount,
    PageTableEntry,
    ProcessTable,
    init_clock,
)


def bits(pager):
    return [f.reference_bit for f in pager.snapshot().frames]


def pages(pager):
    return [f.page for f in pager.snapshot().frames]


class TestConfiguration:
    """Verify frame count validation."""

    @pytest.mark.parametrize("count", [0, -1, 2.5, None, True])
    def test_rejects_invalid_frame_count(self, count) -> None:
        """Frame count must be a positive integer."""
        with pytest.raises(InvalidFrameCount):
            ClockPager(ClockConfig(count))

    def test_starts_empty(self) -> None:
        """A new pager has empty frames, clear bits and the hand at 0."""
        pager = init_clock(4)
        snap = pager.snapshot()
        assert [f.page for f in snap.frames] == [None] * 4
        assert bits(pager) == [0] * 4
        assert snap.hand == 0


class TestLoading:
    """Verify the first pages fill empty frames in order."""

    def test_fills_frames_in_order(self) -> None:
        """Cold misses load frame 0, 1, 2 and wrap the hand."""
        pager = init_clock(3)
        for page in ("A", "B", "C"):
            result = pager.access(page)
            assert not result.hit
            assert result.evicted is None
        assert pages(pager) == ["A", "B", "C"]
        assert bits(pager) == [1, 1, 1]
        assert pager.snapshot().hand == 0
        assert pager.get_stats()["misses"] == 3


class TestHit:
    """Verify hits leave residency alone."""

    def test_hit_sets_bit_and_moves_hand(self) -> None:
        """A hit sets the bit to 1 and puts the hand one past the frame."""
        pager = ClockPager.restore(["A", "B", "C"], [0, 0, 0], hand=0)
        result = pager.access("B")
        assert result.hit
        assert result.frame_index == 1
        assert result.steps == ["hit page B in frame 1"]
        assert pages(pager) == ["A", "B", "C"]
        assert bits(pager) == [0, 1, 0]
        assert pager.snapshot().hand == 2

    def test_hit_never_changes_residency(self) -> None:
        """Any number of hits keeps the same resident set."""
        pager = init_clock(3)
        for page in ("A", "B", "C"):
            pager.access(page)
        before = pager.resident_pages()
        for page in ("C", "A", "B", "A"):
            assert pager.access(page).hit
        assert pager.resident_pages() == before
        assert pager.get_stats()["hits"] == 4


class TestReplacement:
    """Verify the second-chance scan."""

    def test_scan_with_bits_1_1_0(self) -> None:
        """Frames 0 and 1 get second chances, frame 2 is replaced."""
        pager = ClockPager.restore(["A", "B", "C"], [1, 1, 0], hand=0)
        result = pager.access("P")

        assert not result.hit
        assert result.steps[1:] == [
            "second chance frame 0",
            "second chance frame 1",
            "replace frame 2 with P",
        ]
        assert result.steps[0] == "miss page P at hand 0"
        assert result.frame_index == 2
        assert result.evicted == "C"
        assert bits(pager) == [0, 0, 1]
        assert pager.snapshot().hand == 0

    def test_all_bits_set_evicts_hand_frame_after_full_pass(self) -> None:
        """With every bit 1 the hand clears them all, then evicts its start frame."""
        pager = ClockPager.restore(["A", "B", "C", "D"], [1, 1, 1, 1], hand=2)
        result = pager.access("E")

        second_chances = [s for s in result.steps if s.startswith("second chance")]
        assert second_chances == [
            "second chance frame 2",
            "second chance frame 3",
            "second chance frame 0",
            "second chance frame 1",
        ]
        assert result.steps[-1] == "replace frame 2 with E"
        assert result.evicted == "C"
        assert pages(pager) == ["A", "B", "E", "D"]
        assert bits(pager) == [0, 0, 1, 0]
        assert pager.snapshot().hand == 3

    def test_classic_reference_string(self) -> None:
        """Run a reference string and check the final frames and counts."""
        pager = init_clock(3)
        hits = [pager.access(p).hit for p in (1, 2, 3, 1, 4, 1, 5)]
        # the hit on 1 leaves the hand at frame 1, so 4 clears every bit
        # and replaces page 2; 1 hits again; 5 gives frame 1 a second
        # chance and replaces page 3
        assert hits == [False, False, False, True, False, True, False]
        assert pages(pager) == [1, 4, 5]
        assert bits(pager) == [1, 0, 1]
        assert pager.snapshot().hand == 0
        assert pager.get_stats() == {
            "hits": 2,
            "misses": 5,
            "hit_ratio": round(2 / 7, 4),
            "fault_rate": round(5 / 7, 4),
            "total_refs": 7,
        }

    def test_scan_is_bounded(self) -> None:
        """No miss examines more than two full rotations."""
        pager = init_clock(5)
        for page in range(40):
            result = pager.access(page % 7)
            scanned = len(result.steps) - 1
            assert scanned <= 2 * pager.frame_count


class TestRestore:
    """Verify building a pager from an explicit state."""

    def test_rejects_duplicate_pages(self) -> None:
        """A page may occupy at most one frame."""
        with pytest.raises(ValueError):
            ClockPager.restore(["A", "A"], [0, 0])

    def test_rejects_bad_bits_and_hand(self) -> None:
        """Bits must be 0/1 and the hand must point at a frame."""
        with pytest.raises(ValueError):
            ClockPager.restore(["A", "B"], [0, 2])
        with pytest.raises(ValueError):
            ClockPager.restore(["A", "B"], [0, 0], hand=2)
        with pytest.raises(ValueError):
            ClockPager.restore(["A"], [0, 0])


class TestBookkeeping:
    """Verify logs, history, snapshots and release."""

    def test_event_log_and_last_steps(self) -> None:
        """The event log accumulates every step; last_steps holds the latest access."""
        pager = init_clock(2)
        pager.access("A")
        pager.access("A")
        assert pager.last_steps == ["hit page A in frame 0"]
        assert pager.event_log == [
            "miss page A at hand 0",
            "replace frame 0 with A",
            "hit page A in frame 0",
        ]

    def test_access_history_is_bounded(self) -> None:
        """Only the ten most recent accesses are kept."""
        pager = init_clock(2)
        for page in range(15):
            pager.access(page)
        assert len(pager.access_history) == 10
        assert pager.access_history[-1]["page"] == 14

    def test_snapshot_is_a_copy(self) -> None:
        """Snapshots do not change after later accesses."""
        pager = init_clock(2)
        snap = pager.snapshot()
        pager.access("A")
        assert snap.frames[0].page is None

    def test_release_empties_frames(self) -> None:
        """Released pages leave their frames empty with a clear bit."""
        pager = init_clock(3)
        for page in ("1-0", "2-0", "1-1"):
            pager.access(page)
        assert pager.release(["1-0", "1-1", "9-9"]) == [0, 2]
        assert pages(pager) == [None, "2-0", None]
        assert bits(pager) == [0, 1, 0]

    def test_pages_match_by_equality(self) -> None:
        """Equal keys name the same page, as they would in a dict."""
        pager = init_clock(2)
        pager.access(1)
        assert pager.access(1.0).hit
        assert pager.access(True).hit
        assert not pager.access("1").hit

    def test_none_page_rejected(self) -> None:
        """None marks an empty frame and cannot be accessed."""
        with pytest.raises(ValueError):
            init_clock(2).access(None)

    def test_reset(self) -> None:
        """Reset clears frames, hand and statistics."""
        pager = init_clock(2)
        pager.access("A")
        pager.reset()
        assert pages(pager) == [None, None]
        assert pager.get_stats()["total_refs"] == 0
        assert pager.event_log == []


class TestProcessTable:
    """Verify process creation and thrashing detection."""

    def test_processes_get_named_pages(self) -> None:
        """Each process owns pages named pid-vpn."""
        table = ProcessTable(pages_per_process=3)
        proc = table.create_process()
        assert proc.pid == 1
        assert proc.pages == ["1-0", "1-1", "1-2"]

    def test_thrashing_threshold(self) -> None:
        """Demand above frames x 1.5 is thrashing."""
        table = ProcessTable(pages_per_process=8)
        table.create_process()
        assert not table.is_thrashing(8)   # 8 <= 12
        table.create_process()
        assert table.is_thrashing(8)       # 16 > 12
        assert table.total_demand == 16

    def test_kill_process_returns_pages(self) -> None:
        """Killing a process lowers demand and hands back its pages."""
        table = ProcessTable(pages_per_process=2)
        table.create_process()
        second = table.create_process()
        assert table.kill_process(second.pid) == ["2-0", "2-1"]
        assert table.total_demand == 2
        with pytest.raises(KeyError):
            table.kill_process(second.pid)

    def test_reconfigure_drops_processes_and_resets_pager(self) -> None:
        """Changing pages per process starts over without stale frames."""
        pager = init_clock(4)
        table = ProcessTable(pages_per_process=2)
        proc = table.create_process()
        for page in proc.pages:
            pager.access(page)

        table.reconfigure(3, pager)
        assert table.processes == {}
        assert pages(pager) == [None] * 4
        assert pager.get_stats()["total_refs"] == 0

        fresh = table.create_process()
        assert fresh.pid == 2
        assert fresh.pages == ["2-0", "2-1", "2-2"]
        assert not pager.access("2-0").hit

    def test_reconfigure_rejects_non_positive_pages(self) -> None:
        """A process needs at least one page."""
        with pytest.raises(ValueError):
            ProcessTable().reconfigure(0, init_clock(2))


class TestPageTable:
    """Verify the per-process page table view."""

    def test_entries_follow_residency(self) -> None:
        """Accessed pages are present in their frame, the rest are not."""
        pager = init_clock(2)
        table = ProcessTable(pages_per_process=3)
        table.create_process()
        table.access(pager, "1-0")
        table.access(pager, "1-2")
        assert table.page_table(pager) == {
            "1-0": PageTableEntry("1-0", True, 0),
            "1-1": PageTableEntry("1-1", False, None),
            "1-2": PageTableEntry("1-2", True, 1),
        }

    def test_eviction_clears_present_bit(self) -> None:
        """A page pushed out by the clock hand is no longer present."""
        pager = init_clock(2)
        table = ProcessTable(pages_per_process=3)
        table.create_process()
        for vpn in ["1-0", "1-1", "1-2"]:
            table.access(pager, vpn)
        # full pass clears both bits, then frame 0 is replaced
        entries = table.page_table(pager)
        assert not entries["1-0"].present
        assert entries["1-0"].frame is None
        assert entries["1-2"] == PageTableEntry("1-2", True, 0)
        assert entries["1-1"] == PageTableEntry("1-1", True, 1)

    def test_kill_removes_entries_and_frames(self) -> None:
        """Killing a process drops its pages from the table and from RAM."""
        pager = init_clock(4)
        table = ProcessTable(pages_per_process=2)
        first = table.create_process()
        second = table.create_process()
        for vpn in first.pages + second.pages:
            table.access(pager, vpn)

        assert pager.release(table.kill_process(first.pid)) == [0, 1]
        entries = table.page_table(pager)
        assert list(entries) == ["2-0", "2-1"]
        assert [e.frame for e in entries.values()] == [2, 3]
        assert pages(pager) == [None, None, "2-0", "2-1"]

    def test_access_requires_live_owner(self) -> None:
        """Pages of unknown or killed processes cannot be accessed."""
        pager = init_clock(2)
        table = ProcessTable(pages_per_process=1)
        proc = table.create_process()
        table.kill_process(proc.pid)
        with pytest.raises(KeyError):
            table.access(pager, "1-0")
        assert pager.get_stats()["total_refs"] == 0
