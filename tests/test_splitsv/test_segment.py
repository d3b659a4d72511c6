import pytest

from splitsv.error import InvalidSegmentAccess
from splitsv.segment import Segment, SegmentStore

from .mock import add_read, segment_record


class TestSegment:
    def test_immutable(self):
        seg = Segment('1', 10, 100, '+', 0.9, 60, read_id='r1', order=0)
        with pytest.raises(AttributeError):
            seg._start = 5
        assert seg.start == 10
        assert len(seg) == 90

    def test_start_after_end_error(self):
        with pytest.raises(AttributeError):
            Segment('1', 100, 10, '+', 0.9, 60, read_id='r1', order=0)

    def test_bad_strand_error(self):
        with pytest.raises(KeyError):
            Segment('1', 10, 100, '?', 0.9, 60, read_id='r1', order=0)

    def test_query_coordinates_together(self):
        with pytest.raises(AttributeError):
            Segment('1', 10, 100, '+', 0.9, 60, read_id='r1', order=0, query_start=5)

    def test_released_access_error(self):
        seg = Segment('1', 10, 100, '+', 0.9, 60, read_id='r1', order=0)
        seg.release()
        assert seg.released
        with pytest.raises(InvalidSegmentAccess):
            seg.chr
        with pytest.raises(AssertionError):
            seg.identity
        assert 'released' in repr(seg)


class TestSegmentStore:
    def test_add_read_orders_segments(self):
        store = SegmentStore()
        read = add_read(store, 'r1', ('1', 0, 100), ('2', 500, 600), ('1', 900, 1000))
        assert [s.order for s in read] == [0, 1, 2]
        assert [s.read_id for s in read] == ['r1'] * 3
        assert [(a.order, b.order) for a, b in read.adjacent_pairs()] == [(0, 1), (1, 2)]
        assert len(store) == 1
        assert store.get('r1') is read

    def test_duplicate_read_error(self):
        store = SegmentStore()
        add_read(store, 'r1', ('1', 0, 100))
        with pytest.raises(KeyError):
            add_read(store, 'r1', ('1', 0, 100))

    def test_context_releases_segments(self):
        with SegmentStore() as store:
            read = add_read(store, 'r1', ('1', 0, 100), ('1', 500, 600))
            assert all(store.owns(s) for s in read)
        for segment in read:
            assert segment.released
        assert len(store) == 0

    def test_detach(self):
        with SegmentStore() as store:
            first, second = add_read(store, 'r1', ('1', 0, 100), ('1', 500, 600)).segments
            store.detach(first, second)
            assert not store.owns(first)
            with pytest.raises(ValueError):
                store.detach(first, second)
        assert not first.released
        assert not second.released

    def test_detach_foreign_segment_error(self):
        other = SegmentStore()
        first, second = add_read(other, 'r1', ('1', 0, 100), ('1', 500, 600)).segments
        store = SegmentStore()
        with pytest.raises(ValueError):
            store.detach(first, second)

    def test_release_read(self):
        store = SegmentStore()
        read = add_read(store, 'r1', segment_record('1', 0, 100), segment_record('1', 500, 600))
        add_read(store, 'r2', ('1', 0, 100))
        store.release_read('r1')
        assert all(s.released for s in read)
        assert len(store) == 1
