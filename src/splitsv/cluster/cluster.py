import bisect
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

import numpy as np
from shortuuid import uuid

from ..breakpoint import BreakEnd, Breakpoint, BreakpointKey
from ..config import Settings
from ..constants import COLUMNS, ORIENT, SVTYPE
from ..error import ResourceExhaustedError
from ..index import BreakpointIndex
from ..util import logger


def majority_vote(values: Iterable[str], tie: str) -> str:
    """
    Example:
        >>> majority_vote(['deletion', 'deletion', 'duplication'], 'ambiguous')
        'deletion'
        >>> majority_vote(['deletion', 'duplication'], 'ambiguous')
        'ambiguous'
    """
    ranked = Counter(values).most_common()
    if not ranked:
        return tie
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return tie
    return ranked[0][0]


def member_sort_key(breakpoint: Breakpoint):
    return (breakpoint.key, breakpoint.first.order)


def sorted_median(positions: List[int]) -> int:
    """
    the floored median of a sorted non-empty list

    Example:
        >>> sorted_median([1, 2, 4, 8])
        3
    """
    middle = len(positions) // 2
    if len(positions) % 2:
        return positions[middle]
    return (positions[middle - 1] + positions[middle]) // 2


def key_distance(first: BreakpointKey, second: BreakpointKey) -> int:
    return abs(first[1] - second[1]) + abs(first[2] - second[2])


class Cluster:
    """
    A group of breakpoints linked (transitively) by having both positions within the clustering distance

    Each read contributes at most a single member. Any other breakpoint from a read which is already a member is kept as
    redundant linkage evidence and is not counted towards the support
    """

    def __init__(self, cluster_id: int, representative: BreakpointKey):
        self.cluster_id = cluster_id
        self.representative = representative
        self._members: Dict[str, Breakpoint] = {}
        self.redundant: List[Breakpoint] = []
        # sorted positions of the counted members
        self._positions1: List[int] = []
        self._positions2: List[int] = []

    @property
    def support(self) -> int:
        """the number of distinct reads contributing a breakpoint"""
        return len(self._members)

    @property
    def read_ids(self) -> Set[str]:
        return set(self._members)

    @property
    def members(self) -> List[Breakpoint]:
        return sorted(self._members.values(), key=member_sort_key)

    def __len__(self):
        return len(self._members) + len(self.redundant)

    def add(self, breakpoint: Breakpoint) -> bool:
        """
        Returns:
            True if the breakpoint added a new supporting read to the cluster
        """
        read_id = breakpoint.read_id
        current = self._members.get(read_id)
        if current is None:
            self._set_member(read_id, breakpoint)
            return True
        # a single member per read, choose one independent of the arrival order
        if member_sort_key(breakpoint) < member_sort_key(current):
            self._unset_member(read_id)
            self._set_member(read_id, breakpoint)
            self.redundant.append(current)
        else:
            self.redundant.append(breakpoint)
        return False

    def absorb(self, other: 'Cluster') -> None:
        for breakpoint in other._members.values():
            self.add(breakpoint)
        self.redundant.extend(other.redundant)
        other._members = {}
        other.redundant = []
        other._positions1 = []
        other._positions2 = []

    def _set_member(self, read_id: str, breakpoint: Breakpoint) -> None:
        _, position1, position2 = breakpoint.key
        self._members[read_id] = breakpoint
        bisect.insort(self._positions1, position1)
        bisect.insort(self._positions2, position2)

    def _unset_member(self, read_id: str) -> None:
        _, position1, position2 = self._members.pop(read_id).key
        del self._positions1[bisect.bisect_left(self._positions1, position1)]
        del self._positions2[bisect.bisect_left(self._positions2, position2)]

    def update_representative(self) -> BreakpointKey:
        """
        set the representative to the median positions of the counted members
        """
        if self._positions1:
            self.representative = (
                self.representative[0],
                sorted_median(self._positions1),
                sorted_median(self._positions2),
            )
        return self.representative

    def __repr__(self):
        return f'Cluster({self.cluster_id}, support={self.support}, representative={self.representative})'


@dataclass(frozen=True)
class ConsensusCall:
    """
    A structural variant call made from a cluster with enough supporting reads. Positions are the median of the
    member positions, the ranges give the span of the member positions
    """

    event_type: str
    break1: BreakEnd
    break2: BreakEnd
    break1_range: Tuple[int, int]
    break2_range: Tuple[int, int]
    support: int
    read_ids: Tuple[str, ...]
    min_identity: float
    min_mapping_quality: float
    type_votes: Tuple[Tuple[str, int], ...] = ()
    call_id: str = field(default_factory=lambda: str(uuid()))

    @classmethod
    def from_cluster(cls, cluster: Cluster) -> 'ConsensusCall':
        members = cluster.members
        ends = [member.ends for member in members]
        chr1, chr2 = cluster.representative[0]
        positions1 = np.array([e1.position for e1, _ in ends])
        positions2 = np.array([e2.position for _, e2 in ends])
        svtypes = [member.svtype for member in members]
        return cls(
            event_type=majority_vote(svtypes, SVTYPE.AMBIGUOUS),
            break1=BreakEnd(
                chr1,
                int(np.floor(np.median(positions1))),
                majority_vote([e1.orient for e1, _ in ends], ORIENT.NS),
            ),
            break2=BreakEnd(
                chr2,
                int(np.floor(np.median(positions2))),
                majority_vote([e2.orient for _, e2 in ends], ORIENT.NS),
            ),
            break1_range=(int(positions1.min()), int(positions1.max())),
            break2_range=(int(positions2.min()), int(positions2.max())),
            support=cluster.support,
            read_ids=tuple(sorted(cluster.read_ids)),
            min_identity=min(member.identity for member in members),
            min_mapping_quality=min(member.mapping_quality for member in members),
            type_votes=tuple(sorted(Counter(svtypes).items())),
        )

    @property
    def key(self):
        return (self.break1.chr, self.break2.chr, self.break1.position, self.break2.position)

    def flatten(self) -> Dict:
        """
        returns the key-value representation of the call as can be written directly as a tab row
        """
        return {
            COLUMNS.call_id: self.call_id,
            COLUMNS.event_type: self.event_type,
            COLUMNS.break1_chromosome: self.break1.chr,
            COLUMNS.break1_position: self.break1.position,
            COLUMNS.break1_position_start: self.break1_range[0],
            COLUMNS.break1_position_end: self.break1_range[1],
            COLUMNS.break1_orientation: self.break1.orient,
            COLUMNS.break2_chromosome: self.break2.chr,
            COLUMNS.break2_position: self.break2.position,
            COLUMNS.break2_position_start: self.break2_range[0],
            COLUMNS.break2_position_end: self.break2_range[1],
            COLUMNS.break2_orientation: self.break2.orient,
            COLUMNS.support: self.support,
            COLUMNS.supporting_reads: ';'.join(self.read_ids),
            COLUMNS.min_identity: self.min_identity,
            COLUMNS.min_mapping_quality: self.min_mapping_quality,
            COLUMNS.type_votes: ';'.join(
                f'{svtype}:{count}' for svtype, count in self.type_votes
            ),
        }


class ClusterEngine:
    """
    Online single-linkage clustering of breakpoints. A breakpoint is linked to every indexed breakpoint with both
    positions within the clustering distance; all clusters it links are joined. The resulting clusters do not depend on
    the order the breakpoints are added in

    All updates to the cluster set happen under a single lock so the engine may be fed from several threads
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.index = BreakpointIndex(settings.max_window_size)
        self._clusters: Dict[int, Cluster] = {}
        self._parent: Dict[int, int] = {}
        self._membership: Dict[Breakpoint, int] = {}
        self._next_id = 0
        self._lock = threading.Lock()

    def _find(self, cluster_id: int) -> int:
        root = cluster_id
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[cluster_id] != root:  # path compression
            self._parent[cluster_id], cluster_id = root, self._parent[cluster_id]
        return root

    def cluster_of(self, breakpoint: Breakpoint) -> Optional[Cluster]:
        with self._lock:
            cluster_id = self._membership.get(breakpoint)
            if cluster_id is None:
                return None
            return self._clusters[self._find(cluster_id)]

    def add(self, breakpoint: Breakpoint) -> Cluster:
        """
        cluster a single breakpoint and index it

        Returns:
            the cluster the breakpoint now belongs to

        Raises:
            ResourceExhaustedError: if memory ran out while updating the clusters
        """
        distance = self.settings.clustering_distance
        with self._lock:
            if breakpoint in self._membership:
                raise ValueError('breakpoint has already been clustered', breakpoint)
            key = breakpoint.key
            try:
                # resolve each distinct cluster id once rather than once per neighbour
                linked = {
                    self._find(cluster_id)
                    for cluster_id in {
                        self._membership[other] for other in self.index.query(breakpoint, distance)
                    }
                }
                if not linked:
                    cluster = Cluster(self._next_id, key)
                    self._clusters[cluster.cluster_id] = cluster
                    self._parent[cluster.cluster_id] = cluster.cluster_id
                    self._next_id += 1
                else:
                    candidates = [self._clusters[cid] for cid in linked]
                    cluster = min(
                        candidates,
                        key=lambda c: (
                            key_distance(c.representative, key),
                            c.representative,
                            c.cluster_id,
                        ),
                    )
                    for other in candidates:
                        if other is cluster:
                            continue
                        cluster.absorb(other)
                        self._parent[other.cluster_id] = cluster.cluster_id
                        del self._clusters[other.cluster_id]
                cluster.add(breakpoint)
                cluster.update_representative()
                self._membership[breakpoint] = cluster.cluster_id
                self.index.insert(breakpoint)
            except MemoryError as err:
                raise ResourceExhaustedError('unable to allocate while clustering breakpoints') from err
            return cluster

    def add_all(self, breakpoints: Iterable[Breakpoint]) -> int:
        count = 0
        for breakpoint in breakpoints:
            self.add(breakpoint)
            count += 1
        return count

    def clusters(self) -> List[Cluster]:
        with self._lock:
            return sorted(self._clusters.values(), key=lambda c: (c.representative, c.cluster_id))

    def __len__(self):
        return len(self._clusters)

    @property
    def redundant_count(self) -> int:
        """the number of breakpoints kept only as linkage evidence (their read already supports the cluster)"""
        with self._lock:
            return sum(len(cluster.redundant) for cluster in self._clusters.values())

    def consensus_calls(self, min_support: Optional[int] = None) -> List[ConsensusCall]:
        """
        Create a call for every cluster supported by at least min_support distinct reads (defaults to the
        min_cluster_support setting)
        """
        if min_support is None:
            min_support = self.settings.min_cluster_support
        calls = [
            ConsensusCall.from_cluster(cluster)
            for cluster in self.clusters()
            if cluster.support >= min_support
        ]
        calls.sort(key=lambda c: c.key)
        logger.info(
            f'{len(calls)} of {len(self._clusters)} clusters have at least {min_support} supporting reads'
        )
        return calls
