"""
Clock (Second-Chance) Page Replacement

Simulates a fixed set of physical frames managed with the Clock algorithm:
    - Each frame carries a reference bit, set on load and on every hit
    - A single hand sweeps the frames circularly on a page fault
    - Frames with reference bit 1 get a second chance (bit cleared)
    - The first frame found with reference bit 0 is the victim

Also holds the process table used by the thrashing view, where every
process brings a fixed number of virtual pages that compete for frames.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Hashable, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10


class InvalidFrameCount(ValueError):
    """Raised when a pager is configured with a non-positive frame count."""


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class ClockConfig:
    """
    Configuration for a Clock pager.

    Attributes:
        frame_count (int): Number of physical frames (fixed for the pager's life)
    """
    frame_count: int = 4


@dataclass
class Frame:
    """
    Represents a physical memory frame in RAM.

    Attributes:
        index (int): The frame's position in the circular frame array
        page (Optional[Hashable]): The resident page, None if the frame is empty
        reference_bit (int): 1 if recently used, 0 once the hand has passed it
    """
    index: int
    page: Optional[Hashable] = None
    reference_bit: int = 0

    @property
    def occupied(self) -> bool:
        return self.page is not None


@dataclass(frozen=True)
class FrameView:
    """Immutable copy of a frame, safe to hand to the UI."""
    index: int
    page: Optional[Hashable]
    reference_bit: int


@dataclass(frozen=True)
class ClockSnapshot:
    frames: Tuple[FrameView, ...]
    hand: int


@dataclass
class AccessResult:
    """
    Outcome of a single page access.

    Attributes:
        hit (bool): True if the page was already resident
        frame_index (int): Frame holding the page after the access
        steps (List[str]): Ordered step log of the access
        evicted (Optional[Hashable]): Page removed to make room, if any
    """
    hit: bool
    frame_index: int
    steps: List[str] = field(default_factory=list)
    evicted: Optional[Hashable] = None


# =============================================================================
# CLOCK PAGER - Core Simulation Engine
# =============================================================================

class ClockPager:
    """
    Clock page replacement over a fixed number of frames.

    Attributes:
        frame_count (int): Number of frames
        frames (List[Frame]): The frame table (owned; use snapshot() to read)
        hand (int): Index of the next frame the scan will examine
        hits (int): Count of page hits
        misses (int): Count of page faults
        event_log (List[str]): Every step ever emitted, oldest first
        access_history (Deque[dict]): The most recent accesses
    """

    def __init__(self, config: Optional[ClockConfig] = None):
        """
        Initialize the pager with empty frames and the hand at frame 0.

        Args:
            config (ClockConfig): Frame count configuration

        Raises:
            InvalidFrameCount: If the frame count is not a positive integer
        """
        self.config = config or ClockConfig()
        count = self.config.frame_count
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise InvalidFrameCount(f"Frame count must be a positive integer, got {count!r}")
        self.frame_count = count
        self.reset()

    @classmethod
    def restore(cls, pages: List[Optional[Hashable]], reference_bits: List[int], hand: int = 0) -> "ClockPager":
        """
        Build a pager from an explicit frame state.

        Args:
            pages: Resident page per frame (None for an empty frame)
            reference_bits: Reference bit per frame (0 or 1)
            hand: Starting hand position

        Raises:
            ValueError: If the lists differ in length, a bit is not 0/1,
                a page appears twice, or the hand is out of range
        """
        if len(pages) != len(reference_bits):
            raise ValueError("pages and reference_bits must have the same length")
        resident = [p for p in pages if p is not None]
        if len(resident) != len(set(resident)):
            raise ValueError("a page can occupy at most one frame")
        if any(bit not in (0, 1) for bit in reference_bits):
            raise ValueError("reference bits must be 0 or 1")

        pager = cls(ClockConfig(len(pages)))
        if not 0 <= hand < pager.frame_count:
            raise ValueError(f"hand {hand} out of range for {pager.frame_count} frames")
        for frame, page, bit in zip(pager.frames, pages, reference_bits):
            frame.page = page
            frame.reference_bit = bit
        pager.hand = hand
        return pager

    def reset(self):
        """Clear every frame, the hand, statistics and logs."""
        self.frames: List[Frame] = [Frame(i) for i in range(self.frame_count)]
        self.hand = 0
        self.hits = 0
        self.misses = 0
        self.event_log: List[str] = []
        self.last_steps: List[str] = []
        self.access_history: Deque[dict] = deque(maxlen=HISTORY_LIMIT)

    # =========================================================================
    # ACCESS
    # =========================================================================

    def access(self, page: Hashable) -> AccessResult:
        """
        Reference a page, replacing a resident page on a miss.

        Args:
            page: Page identifier (any hashable, not None). Pages are matched
                by equality, the same way dict keys are, so 1, 1.0 and True
                all name the same page.

        Returns:
            AccessResult: hit flag, frame index and the step log
        """
        if page is None:
            raise ValueError("page must not be None")

        frame = self._frame_of(page)
        if frame is not None:
            # ----- HIT -----
            frame.reference_bit = 1
            self.hits += 1
            self.hand = (frame.index + 1) % self.frame_count
            result = AccessResult(True, frame.index,
                                  [f"hit page {page} in frame {frame.index}"])
        else:
            # ----- MISS -----
            self.misses += 1
            result = self._replace(page)

        self.last_steps = list(result.steps)
        self.event_log.extend(result.steps)
        self.access_history.append({
            "page": page,
            "hit": result.hit,
            "frame": result.frame_index,
        })
        return result

    def _replace(self, page: Hashable) -> AccessResult:
        """
        Run the circular second-chance scan and install the page.

        The scan examines at most 2 x frame_count frames: a full pass clears
        every bit, so the second pass always finds a bit of 0.
        """
        steps = [f"miss page {page} at hand {self.hand}"]
        current = self.hand
        for _ in range(2 * self.frame_count):
            frame = self.frames[current]
            if frame.reference_bit == 0:
                evicted = frame.page
                frame.page = page
                frame.reference_bit = 1
                self.hand = (current + 1) % self.frame_count
                steps.append(f"replace frame {current} with {page}")
                logger.debug("Frame %s: %s -> %s", current, evicted, page)
                return AccessResult(False, current, steps, evicted)

            frame.reference_bit = 0
            steps.append(f"second chance frame {current}")
            current = (current + 1) % self.frame_count
            self.hand = current

        raise AssertionError("clock scan did not terminate")

    def _frame_of(self, page: Hashable) -> Optional[Frame]:
        return next((f for f in self.frames if f.page == page), None)

    def release(self, pages: Iterable[Hashable]) -> List[int]:
        """
        Empty every frame holding one of the given pages.

        Args:
            pages: Pages to drop (e.g. all pages of a killed process)

        Returns:
            List[int]: Indices of the frames that were emptied
        """
        targets = set(pages)
        emptied = []
        for frame in self.frames:
            if frame.page is not None and frame.page in targets:
                frame.page = None
                frame.reference_bit = 0
                emptied.append(frame.index)
        if emptied:
            self.event_log.append(f"released frames {emptied}")
        return emptied

    # =========================================================================
    # QUERIES
    # =========================================================================

    def snapshot(self) -> ClockSnapshot:
        frames = tuple(FrameView(f.index, f.page, f.reference_bit) for f in self.frames)
        return ClockSnapshot(frames, self.hand)

    def resident_pages(self) -> Dict[Hashable, int]:
        """Map of resident page -> frame index."""
        return {f.page: f.index for f in self.frames if f.occupied}

    def get_stats(self) -> Dict[str, float]:
        """
        Calculate and return simulation statistics.

        Returns:
            Dict[str, float]: hits, misses, hit_ratio, fault_rate, total_refs
        """
        total_refs = self.hits + self.misses
        hit_ratio = (self.hits / total_refs) if total_refs > 0 else 0.0
        fault_rate = (self.misses / total_refs) if total_refs > 0 else 0.0

        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": round(hit_ratio, 4),
            "fault_rate": round(fault_rate, 4),
            "total_refs": total_refs,
        }


def init_clock(frame_count: int = 4) -> ClockPager:
    return ClockPager(ClockConfig(frame_count))


# =============================================================================
# PROCESS TABLE - Thrashing
# =============================================================================

@dataclass
class Process:
    pid: int
    page_count: int

    @property
    def pages(self) -> List[str]:
        return [f"{self.pid}-{vpn}" for vpn in range(self.page_count)]


@dataclass(frozen=True)
class PageTableEntry:
    """
    One virtual page of a process, as seen through the pager.

    Attributes:
        vpn (str): Page name, "<pid>-<page number>"
        present (bool): True if the page currently occupies a frame
        frame (Optional[int]): Frame holding the page, None when not present
    """
    vpn: str
    present: bool
    frame: Optional[int] = None


class ProcessTable:
    """
    Tracks running processes and their aggregate page demand.

    The system is considered thrashing once total demand exceeds
    ``frame_count * thrashing_factor``.
    """

    def __init__(self, pages_per_process: int = 8, thrashing_factor: float = 1.5):
        if pages_per_process <= 0:
            raise ValueError("pages_per_process must be positive")
        self.pages_per_process = pages_per_process
        self.thrashing_factor = thrashing_factor
        self.processes: Dict[int, Process] = {}
        self.next_pid = 1

    def create_process(self) -> Process:
        proc = Process(self.next_pid, self.pages_per_process)
        self.processes[proc.pid] = proc
        self.next_pid += 1
        return proc

    def kill_process(self, pid: int) -> List[str]:
        """Remove a process and return the pages it owned."""
        proc = self.processes.pop(pid, None)
        if proc is None:
            raise KeyError(f"No process with pid {pid}")
        return proc.pages

    def reconfigure(self, pages_per_process: int, pager: ClockPager) -> None:
        """
        Change the page count for new processes and start a fresh workload.

        Every running process is dropped and the pager is reset, so no frame
        keeps a page whose owner is gone. Pids keep counting up.
        """
        if pages_per_process <= 0:
            raise ValueError("pages_per_process must be positive")
        self.pages_per_process = pages_per_process
        self.processes.clear()
        pager.reset()

    def access(self, pager: ClockPager, vpn: str) -> AccessResult:
        """
        Reference one page of a running process.

        Raises:
            KeyError: If no running process owns the page
        """
        if not any(vpn in proc.pages for proc in self.processes.values()):
            raise KeyError(f"No running process owns page {vpn!r}")
        return pager.access(vpn)

    def page_table(self, pager: ClockPager) -> Dict[str, PageTableEntry]:
        """Map every page of every running process to its residency."""
        resident = pager.resident_pages()
        table = {}
        for proc in self.processes.values():
            for vpn in proc.pages:
                frame = resident.get(vpn)
                table[vpn] = PageTableEntry(vpn, frame is not None, frame)
        return table

    @property
    def total_demand(self) -> int:
        return sum(p.page_count for p in self.processes.values())

    def is_thrashing(self, frame_count: int) -> bool:
        thrashing = self.total_demand > frame_count * self.thrashing_factor
        if thrashing:
            logger.info("Demand %s pages exceeds %s frames x %s",
                        self.total_demand, frame_count, self.thrashing_factor)
        return thrashing
