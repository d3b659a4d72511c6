import weakref
from typing import NamedTuple, Optional, Tuple

from .constants import ORIENT, STRAND, SVTYPE
from .error import InvalidSegmentAccess
from .segment import Segment
from .util import logger


BreakpointKey = Tuple[Tuple[str, str], int, int]


class BreakEnd(NamedTuple):
    """one side of a breakpoint. The position is the first reference position lost at the junction"""

    chr: str
    position: int
    orient: str


class Breakpoint:
    """
    The junction between two segments which are adjacent in the alignment order of a read

    Use one of the two concrete classes which differ only in who owns the segments
    (:class:`BorrowedBreakpoint` or :class:`OwnedBreakpoint`)
    """

    def __init__(self):
        self._destroyed = False
        # (junction, ends, key) computed on first use
        self._loci: Optional[Tuple[Tuple[BreakEnd, BreakEnd], Tuple[BreakEnd, BreakEnd], BreakpointKey]] = None

    @property
    def first(self) -> Segment:
        raise NotImplementedError('abstract method')

    @property
    def second(self) -> Segment:
        raise NotImplementedError('abstract method')

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def read_id(self) -> str:
        return self.first.read_id

    def _locate(self):
        """
        the two sides of the junction in read order. For a forward strand segment the read leaves the first segment at
        its end, for a reverse strand segment at its start (and vice versa for entering the second segment)
        """
        first, second = self.first, self.second
        if first.released or second.released:
            raise InvalidSegmentAccess('breakpoint refers to a released segment', first, second)
        if self._loci is not None:
            return self._loci
        if first.strand == STRAND.POS:
            end1 = BreakEnd(first.chr, first.end, ORIENT.LEFT)
        else:
            end1 = BreakEnd(first.chr, first.start, ORIENT.RIGHT)
        if second.strand == STRAND.POS:
            end2 = BreakEnd(second.chr, second.start, ORIENT.RIGHT)
        else:
            end2 = BreakEnd(second.chr, second.end, ORIENT.LEFT)
        if (end2.chr, end2.position) < (end1.chr, end1.position):
            ends = (end2, end1)
        else:
            ends = (end1, end2)
        key = ((ends[0].chr, ends[1].chr), ends[0].position, ends[1].position)
        self._loci = ((end1, end2), ends, key)
        return self._loci

    @property
    def junction(self) -> Tuple[BreakEnd, BreakEnd]:
        """the two sides of the junction in read order"""
        return self._locate()[0]

    @property
    def ends(self) -> Tuple[BreakEnd, BreakEnd]:
        """
        the two sides of the junction ordered by (chromosome, position) so that reads sequenced from either strand
        describe the same junction identically
        """
        return self._locate()[1]

    @property
    def break1(self) -> BreakEnd:
        return self.ends[0]

    @property
    def break2(self) -> BreakEnd:
        return self.ends[1]

    @property
    def chromosome_pair(self) -> Tuple[str, str]:
        end1, end2 = self.ends
        return (end1.chr, end2.chr)

    @property
    def key(self) -> BreakpointKey:
        """total order used to break ties between breakpoints: chromosome pair, then first then second position"""
        return self._locate()[2]

    @property
    def interchromosomal(self) -> bool:
        return self.first.chr != self.second.chr

    @property
    def opposing_strands(self) -> bool:
        return self.first.strand != self.second.strand

    @property
    def gap(self) -> Optional[int]:
        """
        signed reference distance between the segments along the direction of the read. Negative when the segments
        overlap. None for interchromosomal breakpoints

        Example:
            >>> # first: 1:100-200(+), second: 1:300-400(+)
            >>> bp.gap
            100
        """
        if self.interchromosomal:
            return None
        end1, end2 = self.junction
        if self.first.strand == STRAND.POS:
            return end2.position - end1.position
        return end1.position - end2.position

    @property
    def query_gap(self) -> Optional[int]:
        """number of read bases between the two aligned portions. None if the query coordinates are not known"""
        first, second = self.first, self.second
        if first.query_end is None or second.query_start is None:
            return None
        return second.query_start - first.query_end

    @property
    def identity(self) -> float:
        return min(self.first.identity, self.second.identity)

    @property
    def mapping_quality(self) -> float:
        return min(self.first.mapping_quality, self.second.mapping_quality)

    def passes_filters(self, min_identity: float, min_map_quality: float) -> bool:
        """True if both segments individually meet the identity and mapping quality thresholds"""
        for segment in (self.first, self.second):
            if segment.identity < min_identity or segment.mapping_quality < min_map_quality:
                return False
        return True

    @property
    def svtype(self) -> str:
        return classify(self)

    def _check_alive(self) -> None:
        if self._destroyed:
            raise InvalidSegmentAccess('breakpoint has already been destroyed', self)

    def __repr__(self):
        if self._destroyed:
            return f'{self.__class__.__name__}(destroyed)'
        end1, end2 = self.ends
        return '{}({}:{}{}, {}:{}{})'.format(
            self.__class__.__name__,
            end1.chr,
            end1.position,
            end1.orient,
            end2.chr,
            end2.position,
            end2.orient,
        )


class BorrowedBreakpoint(Breakpoint):
    """
    A breakpoint which refers to segments owned by a :class:`~splitsv.segment.SegmentStore`. It must not outlive the store
    """

    def __init__(self, first: Segment, second: Segment):
        Breakpoint.__init__(self)
        self._first = weakref.ref(first)
        self._second = weakref.ref(second)

    def _resolve(self, ref) -> Segment:
        self._check_alive()
        segment = ref() if ref is not None else None
        if segment is None:
            raise InvalidSegmentAccess('breakpoint refers to a segment which no longer exists')
        return segment

    @property
    def first(self) -> Segment:
        return self._resolve(self._first)

    @property
    def second(self) -> Segment:
        return self._resolve(self._second)

    def destroy(self) -> None:
        """
        drop the references to the segments. The segments themselves are left intact
        """
        if self._destroyed:
            logger.error(f'attempted to destroy a breakpoint which was already destroyed: {self!r}')
            return
        self._first = None
        self._second = None
        self._destroyed = True


class OwnedBreakpoint(Breakpoint):
    """
    A breakpoint holding exclusive ownership of a detached pair of segments (see
    :meth:`~splitsv.segment.SegmentStore.detach`). Destroying it releases the segments as well
    """

    def __init__(self, first: Segment, second: Segment):
        Breakpoint.__init__(self)
        self._segments: Optional[Tuple[Segment, Segment]] = (first, second)

    @property
    def first(self) -> Segment:
        self._check_alive()
        return self._segments[0]  # type: ignore

    @property
    def second(self) -> Segment:
        self._check_alive()
        return self._segments[1]  # type: ignore

    def destroy_full(self) -> None:
        """
        destroy the breakpoint and release both of its segments
        """
        if self._destroyed:
            logger.error(f'attempted to destroy a breakpoint which was already destroyed: {self!r}')
            return
        for segment in self._segments:  # type: ignore
            segment.release()
        self._segments = None
        self._destroyed = True


def classify(breakpoint: Breakpoint) -> str:
    """
    uses the chromosomes, strands and coordinate ordering of the two segments to determine the type of
    structural variant a breakpoint supports

    Returns:
        SVTYPE: the inferred event type

    Example:
        >>> # first: 1:100-200(+), second: 1:300-400(+)
        >>> classify(bp)
        'deletion'
        >>> # first: 1:100-200(+), second: 1:150-250(+)
        >>> classify(bp)
        'duplication'
    """
    if breakpoint.interchromosomal:
        if breakpoint.opposing_strands:
            return SVTYPE.ITRANS
        return SVTYPE.TRANS
    if breakpoint.opposing_strands:
        return SVTYPE.INV
    gap = breakpoint.gap
    query_gap = breakpoint.query_gap
    # read bases not explained by the reference distance between the segments
    if query_gap is not None and query_gap > abs(gap):  # type: ignore
        return SVTYPE.INS
    if gap >= 0:  # type: ignore
        return SVTYPE.DEL
    return SVTYPE.DUP
