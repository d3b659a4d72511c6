"""
Extraction of candidate breakpoints from the segments of individual reads
"""
from typing import Iterable, Iterator, List

from .breakpoint import BorrowedBreakpoint
from .config import Settings
from .error import ResourceExhaustedError
from .segment import Read
from .util import logger


def is_split_read(read: Read, max_split: int) -> bool:
    """
    True if the read has enough segments to pair and few enough that the alignment is not considered ambiguous
    """
    return 1 < len(read) < max_split


def extract_breakpoints(read: Read, settings: Settings) -> Iterator[BorrowedBreakpoint]:
    """
    Generate the candidate breakpoints of a single read: one for each pair of segments adjacent in alignment order
    where both segments meet the identity and mapping quality thresholds

    Reads which cannot be paired (a single segment) or which are split into max_split or more segments produce
    nothing. This is not an error

    Raises:
        ResourceExhaustedError: if memory ran out while building a breakpoint
    """
    if not is_split_read(read, settings.max_split):
        logger.debug(f'skipping read {read.read_id} with {len(read)} segment(s)')
        return
    for first, second in read.adjacent_pairs():
        if first.identity < settings.min_identity or second.identity < settings.min_identity:
            continue
        if first.mapping_quality < settings.min_map_quality or second.mapping_quality < settings.min_map_quality:
            continue
        try:
            breakpoint = BorrowedBreakpoint(first, second)
        except MemoryError as err:
            raise ResourceExhaustedError(
                f'unable to allocate a breakpoint for read {read.read_id}'
            ) from err
        yield breakpoint


def extract_all(reads: Iterable[Read], settings: Settings) -> List[BorrowedBreakpoint]:
    """
    Collect the breakpoints of a batch of reads. Reads are independent of one another so batches may be processed on
    separate threads
    """
    breakpoints: List[BorrowedBreakpoint] = []
    for read in reads:
        breakpoints.extend(extract_breakpoints(read, settings))
    return breakpoints
