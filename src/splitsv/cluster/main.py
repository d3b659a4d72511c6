import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

from ..bam.read import read_alignments
from ..config import Settings
from ..constants import COLUMNS
from ..extract import extract_all
from ..segment import Read, SegmentStore
from ..util import logger, mkdirp, output_tabbed_file
from .cluster import ClusterEngine, ConsensusCall

BATCHES_PER_THREAD = 4


def split_batches(reads: Sequence[Read], total_batches: int) -> List[List[Read]]:
    """
    split the reads into at most total_batches consecutive batches of (nearly) equal size

    Example:
        >>> [len(b) for b in split_batches(list(range(10)), 3)]
        [4, 3, 3]
    """
    total_batches = max(1, min(total_batches, len(reads)))
    size, remainder = divmod(len(reads), total_batches)
    batches = []
    start = 0
    for i in range(total_batches):
        end = start + size + (1 if i < remainder else 0)
        if end > start:
            batches.append(list(reads[start:end]))
        start = end
    return batches


def cluster_reads(reads: Sequence[Read], settings: Settings) -> ClusterEngine:
    """
    extract the breakpoints of the reads on a pool of worker threads and cluster them as each batch completes

    Returns:
        the engine holding the final clusters
    """
    engine = ClusterEngine(settings)
    batches = split_batches(reads, settings.max_threads * BATCHES_PER_THREAD)
    logger.info(
        f'extracting breakpoints from {len(reads)} reads in {len(batches)} batches ({settings.max_threads} threads)'
    )
    total = 0
    with ThreadPoolExecutor(max_workers=settings.max_threads) as executor:
        futures = [executor.submit(extract_all, batch, settings) for batch in batches]
        for future in as_completed(futures):
            total += engine.add_all(future.result())
    logger.info(
        f'clustered {total} breakpoints into {len(engine)} clusters ({engine.redundant_count} redundant)'
    )
    return engine


def main(
    inputs: List[str],
    output: str,
    settings: Settings,
    start_time: Optional[int] = None,
    **kwargs,
) -> List[ConsensusCall]:
    """
    Args:
        inputs: list of SAM/BAM files to read
        output: path to the output tab file
        settings: the validated thresholds
    """
    if start_time is None:
        start_time = int(time.time())
    with SegmentStore() as store:
        # alignments of one read may be split over several inputs so they are grouped together
        reads: List[Read] = list(read_alignments(inputs, store))
        logger.info(f'loaded {len(reads)} reads ({sum(len(r) for r in reads)} segments)')
        engine = cluster_reads(reads, settings)
        calls = engine.consensus_calls()
        for breakpoint in engine.index:
            breakpoint.destroy()

    if os.path.dirname(output):
        mkdirp(os.path.dirname(output))
    output_tabbed_file(calls, output, header=list(COLUMNS.values()))
    logger.info(f'wrote {len(calls)} calls in {int(time.time()) - start_time}s')
    return calls
