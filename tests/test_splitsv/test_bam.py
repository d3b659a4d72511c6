import pytest

from splitsv.bam import cigar as _cigar
from splitsv.bam.read import alignment_record, group_alignments, read_alignments
from splitsv.constants import CIGAR, STRAND, SVTYPE
from splitsv.extract import extract_breakpoints
from splitsv.segment import SegmentStore

from .mock import (
    FLAG_SECONDARY,
    FLAG_SUPPLEMENTARY,
    alignment,
    deletion_alignments,
    settings,
    unmapped_alignment,
    write_bam,
)


class TestCigar:
    def test_clipping(self):
        assert _cigar.clipping([(CIGAR.H, 10), (CIGAR.S, 5), (CIGAR.M, 100), (CIGAR.S, 20)]) == (15, 20)
        assert _cigar.clipping([(CIGAR.M, 100)]) == (0, 0)

    def test_alignment_matches(self):
        assert _cigar.alignment_matches([(CIGAR.EQ, 10), (CIGAR.X, 2), (CIGAR.I, 3), (CIGAR.M, 5)]) == 17

    def test_identity_from_edit_distance(self):
        cigar = [(CIGAR.M, 90), (CIGAR.I, 5), (CIGAR.M, 5)]
        # 2 mismatches plus the inserted bases
        assert _cigar.identity(cigar, 7) == pytest.approx(0.93)

    def test_identity_from_mismatch_states(self):
        assert _cigar.identity([(CIGAR.EQ, 95), (CIGAR.X, 5)]) == pytest.approx(0.95)

    def test_identity_no_alignment_error(self):
        with pytest.raises(AttributeError):
            _cigar.identity([(CIGAR.S, 100)])


class TestAlignmentRecord:
    def test_forward(self):
        record = alignment_record(alignment('r1', 0, 100, '10S90M', edit_distance=9))
        assert record['start'] == 100
        assert record['end'] == 190
        assert record['strand'] == STRAND.POS
        assert record['query_start'] == 10
        assert record['query_end'] == 100
        assert record['identity'] == pytest.approx(0.9)
        assert record['mapping_quality'] == 60

    def test_reverse_query_coordinates(self):
        record = alignment_record(alignment('r1', 0, 100, '10H80M10S', flag=16))
        assert record['strand'] == STRAND.NEG
        assert record['query_start'] == 10
        assert record['query_end'] == 90


class TestReadAlignments:
    def test_group_and_order(self, tmp_path):
        bam = write_bam(
            str(tmp_path / 'reads.bam'),
            deletion_alignments('fwd', 1000, 5000)
            + deletion_alignments('rev', 1000, 5000, reverse=True)
            + [
                unmapped_alignment('unmapped'),
                alignment('single', 0, 200, '100M'),
                alignment('single', 1, 200, '100M', flag=FLAG_SECONDARY),
            ],
        )
        groups = group_alignments(bam)
        assert sorted(groups) == ['fwd', 'rev', 'single']
        assert [r['start'] for r in groups['fwd']] == [0, 5000]
        assert [r['start'] for r in groups['rev']] == [5000, 0]
        assert len(groups['single']) == 1

        with SegmentStore() as store:
            reads = {read.read_id: read for read in read_alignments(bam, store)}
            assert len(store) == 3
            fwd = list(extract_breakpoints(reads['fwd'], settings()))
            rev = list(extract_breakpoints(reads['rev'], settings()))
            assert [bp.key for bp in fwd] == [(('1', '1'), 1000, 5000)]
            assert [bp.key for bp in rev] == [(('1', '1'), 1000, 5000)]
            assert fwd[0].query_gap == 0
            assert list(extract_breakpoints(reads['single'], settings())) == []

    def test_low_mapping_quality_segment_keeps_adjacency(self, tmp_path):
        bam = write_bam(
            str(tmp_path / 'reads.bam'),
            [
                alignment('r1', 0, 0, '1000M2000S'),
                alignment('r1', 0, 5000, '1000H1000M1000S', flag=FLAG_SUPPLEMENTARY, mapping_quality=5),
                alignment('r1', 0, 9000, '2000H1000M', flag=FLAG_SUPPLEMENTARY),
            ],
        )
        assert [r['start'] for r in group_alignments(bam)['r1']] == [0, 5000, 9000]
        with SegmentStore() as store:
            (read,) = read_alignments(bam, store)
            assert len(read) == 3
            # the first and last segments were never adjacent on the read
            assert list(extract_breakpoints(read, settings(min_map_quality=20))) == []
            assert len(list(extract_breakpoints(read, settings(min_map_quality=5)))) == 2

    def test_read_split_over_files(self, tmp_path):
        first = write_bam(str(tmp_path / 'chr1.bam'), [alignment('r1', 0, 0, '1000M1000S')])
        second = write_bam(
            str(tmp_path / 'chr2.bam'),
            [alignment('r1', 1, 5000, '1000H1000M', flag=FLAG_SUPPLEMENTARY)],
        )
        groups = group_alignments(second, first)
        assert [r['chr'] for r in groups['r1']] == ['1', '2']
        with SegmentStore() as store:
            reads = list(read_alignments([second, first], store))
            assert len(reads) == 1
            (bp,) = extract_breakpoints(reads[0], settings())
            assert bp.key == (('1', '2'), 1000, 5000)
            assert bp.svtype == SVTYPE.TRANS
