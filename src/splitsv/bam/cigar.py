"""
holds methods related to processing cigar tuples. Cigar tuples are generally
an iterable list of tuples where the first element in each tuple is the
CIGAR value (i.e. 1 for an insertion), and the second value is the frequency
"""
from typing import List, Optional, Tuple

from ..constants import ALIGNED_STATES, CIGAR, CLIPPING_STATES

CigarTuples = List[Tuple[int, int]]


def alignment_matches(cigar: CigarTuples) -> int:
    """
    counts the number of aligned bases irrespective of match/mismatch
    this is equivalent to counting all CIGAR.M
    """
    result = 0
    for v, f in cigar:
        if v in ALIGNED_STATES:
            result += f
    return result


def clipping(cigar: CigarTuples) -> Tuple[int, int]:
    """
    the number of clipped (soft or hard) bases at the start and end of the alignment

    Example:
        >>> clipping([(5, 10), (4, 5), (0, 100), (4, 20)])
        (15, 20)
    """
    start = 0
    for v, f in cigar:
        if v not in CLIPPING_STATES:
            break
        start += f
    end = 0
    for v, f in reversed(cigar):
        if v not in CLIPPING_STATES:
            break
        end += f
    return start, end


def identity(cigar: CigarTuples, edit_distance: Optional[int] = None) -> float:
    """
    calculates the fraction of alignment columns (aligned bases, inserted bases and deleted bases) which match the
    reference

    Args:
        cigar: cigar tuples
        edit_distance: the NM tag of the alignment. If not given the mismatches are counted from the X states instead

    Raises:
        AttributeError: the cigar does not have any alignment columns
    """
    aligned = alignment_matches(cigar)
    inserted = sum(f for v, f in cigar if v == CIGAR.I)
    deleted = sum(f for v, f in cigar if v == CIGAR.D)
    columns = aligned + inserted + deleted
    if columns == 0:
        raise AttributeError('input cigar does not have any aligned sections', cigar)
    if edit_distance is None:
        mismatches = sum(f for v, f in cigar if v == CIGAR.X)
    else:
        # NM counts the indel bases as well as the mismatches
        mismatches = max(0, edit_distance - inserted - deleted)
    return max(0, aligned - mismatches) / columns
