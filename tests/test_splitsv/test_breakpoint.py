import logging

import pytest

from splitsv.breakpoint import BorrowedBreakpoint, BreakEnd, OwnedBreakpoint, classify
from splitsv.constants import ORIENT, SVTYPE
from splitsv.error import InvalidSegmentAccess
from splitsv.segment import SegmentStore

from .mock import add_read


def borrowed(store, *segments, read_id='r1'):
    first, second = add_read(store, read_id, *segments).segments
    return BorrowedBreakpoint(first, second)


@pytest.fixture
def store():
    with SegmentStore() as store:
        yield store


class TestBreakpointPositions:
    def test_forward_deletion(self, store):
        bp = borrowed(store, ('1', 0, 1000, '+'), ('1', 5000, 6000, '+'))
        assert bp.ends == (BreakEnd('1', 1000, ORIENT.LEFT), BreakEnd('1', 5000, ORIENT.RIGHT))
        assert bp.gap == 4000
        assert bp.svtype == SVTYPE.DEL

    def test_reverse_read_same_junction(self, store):
        forward = borrowed(store, ('1', 0, 1000, '+'), ('1', 5000, 6000, '+'))
        reverse = borrowed(store, ('1', 5000, 6000, '-'), ('1', 0, 1000, '-'), read_id='r2')
        assert reverse.ends == forward.ends
        assert reverse.key == forward.key
        assert reverse.gap == forward.gap
        assert reverse.svtype == SVTYPE.DEL

    def test_overlap_duplication(self, store):
        bp = borrowed(store, ('1', 100, 200, '+'), ('1', 150, 250, '+'))
        assert bp.gap == -50
        assert bp.svtype == SVTYPE.DUP

    def test_inversion(self, store):
        bp = borrowed(store, ('1', 0, 1000, '+'), ('1', 5000, 6000, '-'))
        assert bp.opposing_strands
        assert bp.svtype == SVTYPE.INV
        assert bp.ends == (BreakEnd('1', 1000, ORIENT.LEFT), BreakEnd('1', 6000, ORIENT.LEFT))

    def test_translocation(self, store):
        bp = borrowed(store, ('2', 0, 1000, '+'), ('1', 5000, 6000, '+'))
        assert bp.interchromosomal
        assert bp.gap is None
        assert bp.svtype == SVTYPE.TRANS
        assert bp.chromosome_pair == ('1', '2')
        assert bp.break1 == BreakEnd('1', 5000, ORIENT.RIGHT)

    def test_inverted_translocation(self, store):
        bp = borrowed(store, ('1', 0, 1000, '+'), ('2', 5000, 6000, '-'))
        assert classify(bp) == SVTYPE.ITRANS

    def test_insertion(self, store):
        bp = borrowed(
            store,
            ('1', 0, 1000, '+', 0.95, 60, 0, 1000),
            ('1', 1002, 2000, '+', 0.95, 60, 1500, 2498),
        )
        assert bp.query_gap == 500
        assert bp.svtype == SVTYPE.INS

    def test_small_query_gap_deletion(self, store):
        bp = borrowed(
            store,
            ('1', 0, 1000, '+', 0.95, 60, 0, 1000),
            ('1', 3000, 4000, '+', 0.95, 60, 1010, 2010),
        )
        assert bp.svtype == SVTYPE.DEL

    def test_minimums(self, store):
        bp = borrowed(store, ('1', 0, 1000, '+', 0.9, 30), ('1', 5000, 6000, '+', 0.8, 60))
        assert bp.identity == 0.8
        assert bp.mapping_quality == 30
        assert bp.passes_filters(0.8, 30)
        assert not bp.passes_filters(0.85, 30)
        assert not bp.passes_filters(0.8, 31)


class TestBorrowedBreakpoint:
    def test_destroy_keeps_segments(self, store):
        read = add_read(store, 'r1', ('1', 0, 1000), ('1', 5000, 6000))
        bp = BorrowedBreakpoint(*read.segments)
        bp.destroy()
        assert bp.destroyed
        assert not any(s.released for s in read)
        with pytest.raises(InvalidSegmentAccess):
            bp.first
        assert 'destroyed' in repr(bp)

    def test_double_destroy_logs_error(self, store, caplog):
        bp = borrowed(store, ('1', 0, 1000), ('1', 5000, 6000))
        bp.destroy()
        with caplog.at_level(logging.ERROR, logger='splitsv'):
            bp.destroy()
        assert 'already destroyed' in caplog.text
        assert bp.destroyed

    def test_access_after_store_release_error(self):
        with SegmentStore() as store:
            bp = borrowed(store, ('1', 0, 1000), ('1', 5000, 6000))
        with pytest.raises(InvalidSegmentAccess):
            bp.ends


class TestOwnedBreakpoint:
    def test_destroy_full_releases_segments(self, store):
        read = add_read(store, 'r1', ('1', 0, 1000), ('1', 5000, 6000))
        bp = OwnedBreakpoint(*store.detach(*read.segments))
        assert bp.svtype == SVTYPE.DEL
        bp.destroy_full()
        assert all(s.released for s in read)
        with pytest.raises(InvalidSegmentAccess):
            bp.first
        with pytest.raises(InvalidSegmentAccess):
            read.segments[0].start

    def test_double_destroy_logs_error(self, store, caplog):
        read = add_read(store, 'r1', ('1', 0, 1000), ('1', 5000, 6000))
        bp = OwnedBreakpoint(*store.detach(*read.segments))
        bp.destroy_full()
        with caplog.at_level(logging.ERROR, logger='splitsv'):
            bp.destroy_full()
        assert 'already destroyed' in caplog.text

    def test_outlives_store(self):
        with SegmentStore() as store:
            read = add_read(store, 'r1', ('1', 0, 1000), ('1', 5000, 6000))
            bp = OwnedBreakpoint(*store.detach(*read.segments))
        assert bp.key == (('1', '1'), 1000, 5000)
        bp.destroy_full()
