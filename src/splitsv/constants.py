"""
module responsible for the controlled vocabularies and constants used throughout the splitsv package
"""
from typing import List

from mavis_config.constants import MavisNamespace

PROGNAME: str = 'splitsv'


class STRAND(MavisNamespace):
    """
    holds controlled vocabulary for allowed strand values

    Attributes:
        POS: the positive/forward strand
        NEG: the negative/reverse strand
    """

    POS: str = '+'
    NEG: str = '-'


class ORIENT(MavisNamespace):
    """
    holds controlled vocabulary for allowed orientation values

    Attributes:
        LEFT: the sequence to the left of the breakpoint (wrt the forward strand) is retained
        RIGHT: the sequence to the right of the breakpoint (wrt the forward strand) is retained
        NS: orientation is not specified (ex. members of a cluster disagree)
    """

    LEFT: str = 'L'
    RIGHT: str = 'R'
    NS: str = '?'


class SVTYPE(MavisNamespace):
    """
    holds controlled vocabulary for acceptable structural variant classifications
    """

    DEL: str = 'deletion'
    TRANS: str = 'translocation'
    ITRANS: str = 'inverted translocation'
    INV: str = 'inversion'
    INS: str = 'insertion'
    DUP: str = 'duplication'
    AMBIGUOUS: str = 'ambiguous'


class CIGAR(MavisNamespace):
    """
    Enum-like. For readable cigar values

    Attributes:
        M: alignment match (can be a sequence match or mismatch)
        I: insertion to the reference
        D: deletion from the reference
        N: skipped region from the reference
        S: soft clipping (clipped sequences present in SEQ)
        H: hard clipping (clipped sequences NOT present in SEQ)
        P: padding (silent deletion from padded reference)
        EQ: sequence match (=)
        X: sequence mismatch

    Note:
        descriptions are taken from the `samfile documentation <https://samtools.github.io/hts-specs/SAMv1.pdf>`_
    """

    M = 0
    I = 1  # noqa: E741
    D = 2
    N = 3
    S = 4
    H = 5
    P = 6
    X = 8
    EQ = 7


CLIPPING_STATES: List[int] = [CIGAR.S, CIGAR.H]
ALIGNED_STATES: List[int] = [CIGAR.M, CIGAR.EQ, CIGAR.X]


# content related to tabbed files for output
# ensure that we don't have to change ALL the code when we update column names
class COLUMNS(MavisNamespace):
    """
    Column names for the consensus call output file
    """

    call_id: str = 'call_id'
    event_type: str = 'event_type'
    break1_chromosome: str = 'break1_chromosome'
    break1_position: str = 'break1_position'
    break1_position_start: str = 'break1_position_start'
    break1_position_end: str = 'break1_position_end'
    break1_orientation: str = 'break1_orientation'
    break2_chromosome: str = 'break2_chromosome'
    break2_position: str = 'break2_position'
    break2_position_start: str = 'break2_position_start'
    break2_position_end: str = 'break2_position_end'
    break2_orientation: str = 'break2_orientation'
    support: str = 'support'
    supporting_reads: str = 'supporting_reads'
    min_identity: str = 'min_identity'
    min_mapping_quality: str = 'min_mapping_quality'
    type_votes: str = 'type_votes'


def sort_columns(input_columns):
    """
    sort a set of column names so the known output columns come first (in their declared order)
    followed by any custom columns sorted alphanumerically
    """
    order = {}
    for i, col in enumerate(COLUMNS.values()):
        order[col] = i
    temp = sorted([c for c in input_columns if c in order], key=lambda x: order[x])
    temp = temp + sorted([c for c in input_columns if c not in order])
    return temp
