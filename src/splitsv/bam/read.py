from typing import Dict, Iterable, Iterator, List, Union

import pysam

from ..constants import STRAND
from ..segment import Read, SegmentStore
from ..util import logger
from . import cigar as _cigar


def alignment_record(read: pysam.AlignedSegment) -> Dict:
    """
    convert a single alignment to the arguments used to create a :class:`~splitsv.segment.Segment`

    The query coordinates are given wrt the sequencing direction of the read (not the reference strand). For reverse
    strand alignments pysam reports the clipping wrt the reverse complement so it is swapped here

    Raises:
        AttributeError: the alignment does not have any aligned bases
    """
    cigar = read.cigartuples
    clip_start, clip_end = _cigar.clipping(cigar)
    read_length = read.infer_read_length()
    aligned_length = read_length - clip_start - clip_end
    if read.is_reverse:
        query_start = clip_end
    else:
        query_start = clip_start
    edit_distance = read.get_tag('NM') if read.has_tag('NM') else None
    return dict(
        chr=read.reference_name,
        start=read.reference_start,
        end=read.reference_end,
        strand=STRAND.NEG if read.is_reverse else STRAND.POS,
        identity=_cigar.identity(cigar, edit_distance),
        mapping_quality=read.mapping_quality,
        query_start=query_start,
        query_end=query_start + aligned_length,
    )


def group_alignments(*bam_paths: str) -> Dict[str, List[Dict]]:
    """
    collect the primary and supplementary alignments of each read over all the input files. Unmapped and secondary
    alignments are ignored. The alignments of each read are sorted by their start position along the read

    Args:
        bam_paths: paths to the SAM/BAM files. An index is not required. The alignments of a read may be spread over
            several files (ex. one file per chromosome)

    Returns:
        the alignment records by read name (in the order the reads are first seen)
    """
    reads: Dict[str, List[Dict]] = {}
    for bam_path in bam_paths:
        skipped = 0
        total = 0
        with pysam.AlignmentFile(bam_path, check_sq=False) as fh:
            for read in fh.fetch(until_eof=True):
                total += 1
                if read.is_unmapped or read.is_secondary or not read.cigartuples:
                    skipped += 1
                    continue
                reads.setdefault(read.query_name, []).append(alignment_record(read))
        logger.info(f'read {total} alignments from {bam_path} ({skipped} skipped)')
    for records in reads.values():
        records.sort(key=lambda r: (r['query_start'], r['query_end']))
    logger.info(f'grouped alignments for {len(reads)} read names')
    return reads


def read_alignments(bam_paths: Union[str, Iterable[str]], store: SegmentStore) -> Iterator[Read]:
    """
    load the reads of one or more SAM/BAM files into a segment store

    Yields:
        Read: each read (with its segments in alignment order) as it is added to the store

    Example:
        >>> with SegmentStore() as store:
        ...     reads = list(read_alignments('reads.bam', store))
    """
    if isinstance(bam_paths, str):
        bam_paths = [bam_paths]
    for read_id, records in group_alignments(*bam_paths).items():
        yield store.add_read(read_id, records)
