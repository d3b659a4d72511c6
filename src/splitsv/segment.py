"""
Alignment segments and the reads which order them

Segments are created by the store from the records given by the alignment reader and are immutable from then on.
The store owns every segment it created until the segment is detached (handed over to an owning breakpoint) or released
"""
import threading
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .constants import STRAND
from .error import InvalidSegmentAccess


def _guarded(name: str, doc: str) -> property:
    attr = '_' + name

    def getter(self):
        if self._released:
            raise InvalidSegmentAccess(f'cannot access {name} of a released segment', self._describe())
        return getattr(self, attr)

    return property(getter, doc=doc)


class Segment:
    """
    A single aligned portion of a read. Coordinates are 0-based and half-open
    """

    __slots__ = (
        '_chr',
        '_start',
        '_end',
        '_strand',
        '_identity',
        '_mapping_quality',
        '_read_id',
        '_order',
        '_query_start',
        '_query_end',
        '_released',
        '__weakref__',
    )

    chr = _guarded('chr', 'the reference name the segment aligns to')
    start = _guarded('start', 'the first aligned reference position')
    end = _guarded('end', 'one past the last aligned reference position')
    strand = _guarded('strand', 'the strand the segment aligns to')
    identity = _guarded('identity', 'the fraction of aligned columns matching the reference')
    mapping_quality = _guarded('mapping_quality', 'the mapping quality of the alignment')
    read_id = _guarded('read_id', 'the name of the read this segment belongs to')
    order = _guarded('order', 'the position of this segment in the alignment order of the read')
    query_start = _guarded('query_start', 'start of the aligned portion wrt the sequenced read')
    query_end = _guarded('query_end', 'end of the aligned portion wrt the sequenced read')

    def __init__(
        self,
        chr: str,
        start: int,
        end: int,
        strand: str,
        identity: float,
        mapping_quality: float,
        read_id: str,
        order: int,
        query_start: Optional[int] = None,
        query_end: Optional[int] = None,
    ):
        """
        Args:
            chr: the reference name
            start: the start of the alignment (0-based, inclusive)
            end: the end of the alignment (0-based, exclusive)
            strand (STRAND): the strand
            identity: fraction (0-1) of the aligned columns which match the reference
            mapping_quality: the mapping quality
            read_id: the name of the owning read
            order: index of the segment in the alignment order of the read
            query_start: start of the aligned portion of the read wrt the sequencing direction
            query_end: end of the aligned portion of the read wrt the sequencing direction
        """
        if start > end:
            raise AttributeError('segment start > end is not allowed', start, end)
        if (query_start is None) != (query_end is None):
            raise AttributeError('query_start and query_end must be given together', query_start, query_end)
        self._chr = str(chr)
        self._start = int(start)
        self._end = int(end)
        self._strand = STRAND.enforce(strand)
        self._identity = float(identity)
        self._mapping_quality = mapping_quality
        self._read_id = read_id
        self._order = int(order)
        self._query_start = query_start
        self._query_end = query_end
        self._released = False

    def __setattr__(self, attr, value):
        if attr != '_released' and hasattr(self, '_released'):
            raise AttributeError('segments are immutable', attr)
        object.__setattr__(self, attr, value)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """
        invalidate the segment. Any later access to its alignment details raises InvalidSegmentAccess
        """
        self._released = True

    def __len__(self):
        return self.end - self.start

    def _describe(self) -> str:
        return f'{self._read_id}[{self._order}] {self._chr}:{self._start}-{self._end}{self._strand}'

    def __repr__(self):
        status = ', released' if self._released else ''
        return f'Segment({self._describe()}{status})'


class Read:
    """
    A read and its segments given in alignment order along the read (not genomic order)
    """

    def __init__(self, read_id: str, segments: Iterable[Segment]):
        self.read_id = read_id
        self.segments: Tuple[Segment, ...] = tuple(segments)

    def __len__(self):
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def adjacent_pairs(self) -> Iterator[Tuple[Segment, Segment]]:
        """
        Example:
            >>> [(a.order, b.order) for a, b in read.adjacent_pairs()]
            [(0, 1), (1, 2)]
        """
        return zip(self.segments, self.segments[1:])

    def __repr__(self):
        return f'Read({self.read_id}, segments={len(self.segments)})'


class SegmentStore:
    """
    Owns the segments of a batch of reads. Using the store as a context manager releases every segment it still owns
    on exit

    Example:
        >>> with SegmentStore() as store:
        ...     read = store.add_read('read1', [dict(chr='1', start=10, end=100, strand='+', identity=0.95, mapping_quality=60)])
    """

    def __init__(self):
        self._reads: Dict[str, Read] = {}
        self._detached: set = set()
        self._lock = threading.Lock()

    def add_read(self, read_id: str, records: Iterable[Mapping]) -> Read:
        """
        create the segments of a read from the alignment records in alignment order

        Args:
            read_id: the read name
            records: mappings of the Segment arguments (chr, start, end, strand, identity, mapping_quality and
                optionally query_start, query_end)

        Raises:
            KeyError: a read with this name is already held by the store
        """
        segments = [
            Segment(read_id=read_id, order=order, **record) for order, record in enumerate(records)
        ]
        read = Read(read_id, segments)
        with self._lock:
            if read_id in self._reads:
                raise KeyError('duplicate read name in segment store', read_id)
            self._reads[read_id] = read
        return read

    def get(self, read_id: str) -> Read:
        return self._reads[read_id]

    def reads(self) -> List[Read]:
        return list(self._reads.values())

    def __len__(self):
        return len(self._reads)

    def __iter__(self) -> Iterator[Read]:
        return iter(self.reads())

    def owns(self, segment: Segment) -> bool:
        """
        True if the segment was created by this store and has been neither detached nor released
        """
        if segment.released or segment in self._detached:
            return False
        read = self._reads.get(segment.read_id)
        return read is not None and any(s is segment for s in read.segments)

    def detach(self, first: Segment, second: Segment) -> Tuple[Segment, Segment]:
        """
        hand ownership of a pair of segments over to the caller. The store will no longer release them

        Raises:
            ValueError: either segment is not owned by this store
        """
        with self._lock:
            for segment in (first, second):
                if not self.owns(segment):
                    raise ValueError('cannot detach a segment not owned by the store', segment)
            self._detached.update({first, second})
        return first, second

    def release_read(self, read_id: str) -> None:
        """
        release the segments of a single read and forget it
        """
        with self._lock:
            read = self._reads.pop(read_id)
            for segment in read.segments:
                if segment not in self._detached:
                    segment.release()

    def release_all(self) -> None:
        with self._lock:
            for read in self._reads.values():
                for segment in read.segments:
                    if segment not in self._detached:
                        segment.release()
            self._reads = {}
            self._detached = set()

    def __enter__(self):
        return self

    def __exit__(self, *pos):
        self.release_all()
