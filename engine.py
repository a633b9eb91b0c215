# engine.py

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from utils import is_power_of_two, next_power_of_two

logger = logging.getLogger(__name__)


# -----------------------------
# Errors
# -----------------------------
class BuddyError(Exception):
    pass


class InvalidBlockSize(BuddyError, ValueError):
    pass


class InsufficientMemory(BuddyError, MemoryError):
    pass


class AllocationDenied(BuddyError, MemoryError):
    """Enough free bytes overall, but no single free block is large enough."""


FragmentationFailure = AllocationDenied


class UnknownAllocationId(BuddyError, LookupError):
    pass


# -----------------------------
# Data model
# -----------------------------
@dataclass
class BuddyConfig:
    total_size: int = 1024
    min_block: int = 16
    strict_free: bool = False  # raise UnknownAllocationId instead of ignoring


class BuddyNode:
    def __init__(self, node_id, size, offset=0, level=0, parent=None):
        self.node_id = node_id
        self.size = size
        self.offset = offset
        self.level = level
        self.parent = parent
        self.is_free = True
        self.allocated_to = None
        self.left = None
        self.right = None

    def is_leaf(self):
        return self.left is None and self.right is None

    def buddy(self):
        if self.parent is None:
            return None
        return self.parent.right if self.parent.left is self else self.parent.left

    def __repr__(self):
        state = "F" if self.is_free else ("A" if self.is_leaf() else "S")
        return f"[{state}|{self.node_id}|{self.offset}|{self.size}]"


@dataclass(frozen=True)
class NodeView:
    """Read-only copy of a tree node handed out to callers."""
    node_id: str
    size: int
    offset: int
    level: int
    is_free: bool
    allocated_to: Optional[str]
    children: Tuple["NodeView", ...] = ()

    @property
    def is_leaf(self):
        return not self.children


@dataclass(frozen=True)
class Allocation:
    alloc_id: str
    size: int
    requested: int


@dataclass(frozen=True)
class Operation:
    kind: str  # split | alloc | free | merge
    node_id: str
    size: int
    alloc_id: Optional[str] = None
    left_id: Optional[str] = None
    right_id: Optional[str] = None

    def describe(self):
        if self.kind == "split":
            return f"Split block {self.node_id} into {self.left_id} and {self.right_id} ({self.size}B each)"
        if self.kind == "alloc":
            return f"Allocated {self.size}B as {self.alloc_id}"
        if self.kind == "free":
            return f"Freed {self.alloc_id} ({self.size}B)"
        return f"Merged blocks {self.left_id} and {self.right_id} into {self.node_id} ({self.size}B)"


# -----------------------------
# Buddy Allocator
# -----------------------------
class BuddyAllocator:
    def __init__(self, config=None):
        self.config = config or BuddyConfig()
        total, floor = self.config.total_size, self.config.min_block
        if not is_power_of_two(total):
            raise InvalidBlockSize(f"Total size must be a positive power of two, got {total}")
        if not is_power_of_two(floor):
            raise InvalidBlockSize(f"Minimum block must be a positive power of two, got {floor}")
        if floor > total:
            raise InvalidBlockSize(f"Minimum block {floor} exceeds total size {total}")
        self.reset()

    @property
    def total_size(self):
        return self.config.total_size

    @property
    def min_block(self):
        return self.config.min_block

    def reset(self):
        self.root = BuddyNode("root", self.total_size)
        self._allocations = {}
        self.next_id = 1
        self.last_operations: List[Operation] = []
        self.history: List[Operation] = []

    def effective_size(self, requested):
        return next_power_of_two(max(requested, self.min_block))

    # -----------------------------
    # Allocate
    # -----------------------------
    def allocate(self, requested_size):
        if isinstance(requested_size, bool) or not isinstance(requested_size, int) or requested_size <= 0:
            raise ValueError(f"Requested size must be a positive integer, got {requested_size!r}")

        size = self.effective_size(requested_size)
        if size > self.free_capacity:
            logger.info("Rejecting %sB (%sB rounded): only %sB free",
                        requested_size, size, self.free_capacity)
            raise InsufficientMemory(
                f"Cannot allocate {requested_size}B ({size}B after rounding). Not enough free memory!"
            )

        ops = []
        node = self._find_block(self.root, size, ops)
        if node is None:
            logger.info("No %sB block available for %sB request", size, requested_size)
            raise AllocationDenied(f"Couldn't allocate {requested_size}B (needed {size}B block)")

        alloc_id = f"A{self.next_id}"
        self.next_id += 1
        node.is_free = False
        node.allocated_to = alloc_id
        self._allocations[alloc_id] = Allocation(alloc_id, size, requested_size)
        ops.append(Operation("alloc", node.node_id, size, alloc_id=alloc_id))
        logger.debug("Allocated %s at %s (offset %s)", alloc_id, node.node_id, node.offset)

        self._record(ops)
        return alloc_id

    def _find_block(self, node, size, ops):
        # depth-first, left before right
        if node.size < size:
            return None
        if node.is_leaf():
            if not node.is_free:
                return None
            if node.size == size:
                return node
            if node.size // 2 < self.min_block:
                return None
            self._split(node, ops)
        return self._find_block(node.left, size, ops) or self._find_block(node.right, size, ops)

    def _split(self, node, ops):
        half = node.size // 2
        node.left = BuddyNode(f"{node.node_id}-L", half, node.offset, node.level + 1, node)
        node.right = BuddyNode(f"{node.node_id}-R", half, node.offset + half, node.level + 1, node)
        node.is_free = False
        ops.append(Operation("split", node.node_id, half,
                             left_id=node.left.node_id, right_id=node.right.node_id))
        logger.debug("Split %s into two %sB buddies", node.node_id, half)

    # -----------------------------
    # Free
    # -----------------------------
    def free(self, alloc_id):
        node = None
        if alloc_id in self._allocations:
            node = self._find_allocated(self.root, alloc_id)
        if node is None:
            if self.config.strict_free:
                raise UnknownAllocationId(f"No allocation with id {alloc_id!r}")
            logger.warning("Ignoring free of unknown allocation %r", alloc_id)
            return False

        node.is_free = True
        node.allocated_to = None
        del self._allocations[alloc_id]
        ops = [Operation("free", node.node_id, node.size, alloc_id=alloc_id)]
        self._coalesce(node, ops)
        self._record(ops)
        return True

    def _find_allocated(self, node, alloc_id):
        if node is None:
            return None
        if node.is_leaf():
            return node if node.allocated_to == alloc_id else None
        return self._find_allocated(node.left, alloc_id) or self._find_allocated(node.right, alloc_id)

    def _coalesce(self, node, ops):
        while node.parent is not None:
            buddy = node.buddy()
            if not (buddy.is_leaf() and buddy.is_free):
                break
            parent = node.parent
            ops.append(Operation("merge", parent.node_id, parent.size,
                                 left_id=parent.left.node_id, right_id=parent.right.node_id))
            logger.debug("Merged %s and %s into %s", parent.left.node_id, parent.right.node_id, parent.node_id)
            parent.left = None
            parent.right = None
            parent.is_free = True
            node = parent

    def _record(self, ops):
        self.last_operations = ops
        self.history.extend(ops)

    # -----------------------------
    # Queries
    # -----------------------------
    def _leaf_nodes(self):
        stack, leaves = [self.root], []
        while stack:
            node = stack.pop()
            if node.is_leaf():
                leaves.append(node)
            else:
                stack.append(node.right)
                stack.append(node.left)
        return leaves

    @property
    def free_capacity(self):
        return sum(n.size for n in self._leaf_nodes() if n.is_free)

    @property
    def allocated_size(self):
        return sum(n.size for n in self._leaf_nodes() if not n.is_free)

    def snapshot(self):
        return self._view(self.root)

    def _view(self, node):
        children = () if node.is_leaf() else (self._view(node.left), self._view(node.right))
        return NodeView(node.node_id, node.size, node.offset, node.level,
                        node.is_free, node.allocated_to, children)

    def leaves(self):
        """Leaf views in address order."""
        return [self._view(n) for n in self._leaf_nodes()]

    def allocations(self):
        return dict(self._allocations)

    # --------------------------------------
    # Fragmentation Metrics
    # --------------------------------------
    def get_fragmentation_metrics(self):
        leaves = self._leaf_nodes()
        free_blocks = [n.size for n in leaves if n.is_free]
        total_free = sum(free_blocks)
        total_alloc = sum(a.size for a in self._allocations.values())
        total_requested = sum(a.requested for a in self._allocations.values())

        # external = 1 - (largest_free_block / total_free)
        if total_free == 0:
            external_frag = 0
        else:
            external_frag = 1 - (max(free_blocks) / total_free)

        # internal = bytes lost to power-of-two rounding inside allocated blocks
        internal_frag = 0 if total_alloc == 0 else (total_alloc - total_requested) / total_alloc

        utilization = total_alloc / self.total_size

        return {
            "external": round(external_frag, 4),
            "internal": round(internal_frag, 4),
            "utilization": round(utilization, 4)
        }


def init_buddy(total_size=1024, min_block=16, strict_free=False):
    return BuddyAllocator(BuddyConfig(total_size, min_block, strict_free))
