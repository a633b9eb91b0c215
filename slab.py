# slab.py

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CACHES = ("task_struct", "inode_cache")


class SlabError(ValueError):
    pass


@dataclass
class Slab:
    slab_id: str
    objects: List[bool] = field(default_factory=list)  # True = free

    @property
    def used(self):
        return sum(1 for free in self.objects if not free)

    def first_free(self):
        return next((i for i, free in enumerate(self.objects) if free), None)


@dataclass
class SlabCache:
    name: str
    slabs: List[Slab] = field(default_factory=list)


class SlabAllocator:
    def __init__(self, cache_names=DEFAULT_CACHES, objects_per_slab=4):
        if objects_per_slab <= 0:
            raise SlabError("objects_per_slab must be positive")
        self.objects_per_slab = objects_per_slab
        self.caches: Dict[str, SlabCache] = {name: SlabCache(name) for name in cache_names}
        self.next_slab = 1
        self.event_log: List[str] = []

    def _cache(self, name):
        try:
            return self.caches[name]
        except KeyError:
            raise SlabError(f"Unknown cache {name!r}") from None

    def allocate(self, cache_name) -> Tuple[str, int]:
        cache = self._cache(cache_name)

        # first slab with a free object
        for slab in cache.slabs:
            index = slab.first_free()
            if index is not None:
                slab.objects[index] = False
                self.event_log.append(f"{cache_name}: object {index} of slab {slab.slab_id} allocated")
                return slab.slab_id, index

        # no space, grow the cache by one slab
        slab = Slab(f"S{self.next_slab}", [True] * self.objects_per_slab)
        self.next_slab += 1
        slab.objects[0] = False
        cache.slabs.append(slab)
        logger.debug("Cache %s grew to %s slabs", cache_name, len(cache.slabs))
        self.event_log.append(f"{cache_name}: new slab {slab.slab_id}, object 0 allocated")
        return slab.slab_id, 0

    def free(self, cache_name, slab_id, index):
        cache = self._cache(cache_name)
        slab = next((s for s in cache.slabs if s.slab_id == slab_id), None)
        if slab is None:
            raise SlabError(f"Unknown slab {slab_id!r} in cache {cache_name!r}")
        if not 0 <= index < len(slab.objects):
            raise SlabError(f"Object index {index} out of range")
        if slab.objects[index]:
            raise SlabError(f"Object {index} of slab {slab_id} is already free")
        slab.objects[index] = True
        self.event_log.append(f"{cache_name}: object {index} of slab {slab_id} freed")

    def usage(self, cache_name):
        cache = self._cache(cache_name)
        used = sum(s.used for s in cache.slabs)
        return used, len(cache.slabs) * self.objects_per_slab
