import os

import pytest

from SIFT.errors import SourceAccessError
from SIFT.UI.views.log_viewer.log_parser import LogLine, LogParser
from SIFT.UI.views.log_viewer.log_reader import LineStore, LoadResult, LogFileReader


def numbered(count):
    return [{"n": i} for i in range(1, count + 1)]


class TestLineStore:

    def test_extend_requires_contiguous_numbers(self):
        store = LineStore([LogLine(1, "a"), LogLine(2, "b")])
        with pytest.raises(ValueError):
            store.extend([LogLine(4, "d")])
        assert len(store) == 2

    def test_last_line_number(self):
        assert LineStore().last_line_number == 0
        assert LineStore([LogLine(1, "a")]).last_line_number == 1


class TestInitialLoad:

    def test_small_file_is_fully_loaded(self, write_log):
        path = write_log(numbered(10))
        reader = LogFileReader(path)
        store = reader.load_initial(1000)
        assert len(store) == 10
        assert reader.is_fully_loaded
        assert not reader.has_handle
        assert reader.file_pos == os.path.getsize(path)

    def test_large_file_keeps_handle(self, write_log):
        path = write_log(numbered(50))
        reader = LogFileReader(path)
        reader.load_initial(20)
        assert len(reader.store) == 20
        assert not reader.is_fully_loaded
        assert reader.has_handle
        reader.close()

    def test_exactly_chunk_size_is_not_fully_loaded(self, write_log):
        path = write_log(numbered(20))
        reader = LogFileReader(path)
        reader.load_initial(20)
        assert not reader.is_fully_loaded
        assert reader.load_more(5) == 0
        assert reader.is_fully_loaded

    def test_missing_file_raises(self, temp_dir_manager):
        reader = LogFileReader(os.path.join(temp_dir_manager, "missing.log"))
        with pytest.raises(SourceAccessError):
            reader.load_initial(10)

    def test_empty_file(self, write_log):
        path = write_log([])
        reader = LogFileReader(path)
        assert len(reader.load_initial(10)) == 0
        assert reader.is_fully_loaded

    def test_unterminated_last_line_is_included(self, write_log):
        path = write_log(['{"a":1}', '{"a":2}'], terminate_last=False)
        reader = LogFileReader(path)
        reader.load_initial(10)
        assert [l.raw_line for l in reader.store] == ['{"a":1}', '{"a":2}']
        assert reader.tail_start == (len('{"a":1}\n'), 1)

    def test_terminated_last_line_tails_from_end(self, write_log):
        path = write_log(['{"a":1}', '{"a":2}'])
        reader = LogFileReader(path)
        reader.load_initial(10)
        assert reader.tail_start == (os.path.getsize(path), 2)


class TestLoadMore:

    def test_numbering_continues_across_chunks(self, write_log):
        path = write_log(numbered(25))
        reader = LogFileReader(path)
        reader.load_initial(10)
        assert reader.load_more(10) == 10
        assert reader.load_more(10) == 5
        assert reader.is_fully_loaded
        assert [l.line_number for l in reader.store] == list(range(1, 26))
        assert [l.json_data["n"] for l in reader.store] == list(range(1, 26))

    def test_read_more_does_not_touch_store(self, write_log):
        path = write_log(numbered(30))
        reader = LogFileReader(path)
        reader.load_initial(10)
        result = reader.read_more(5)
        assert len(reader.store) == 10
        assert [l.line_number for l in result.lines] == [11, 12, 13, 14, 15]
        assert not result.complete
        reader.apply(result)
        assert len(reader.store) == 15
        assert reader.file_pos == result.end_offset
        reader.close()

    def test_load_more_after_fully_loaded_is_noop(self, write_log):
        path = write_log(numbered(3))
        reader = LogFileReader(path)
        reader.load_initial(10)
        assert reader.load_more(10) == 0
        assert len(reader.store) == 3

    def test_apply_error_marks_fully_loaded(self, write_log):
        path = write_log(numbered(30))
        reader = LogFileReader(path)
        reader.load_initial(10)
        reader.apply(LoadResult((), reader.file_pos, True, error="disk gone"))
        assert reader.is_fully_loaded
        assert not reader.has_handle
        assert len(reader.store) == 10


class TestLoadToEnd:

    def test_iter_to_end_yields_batches(self, write_log):
        path = write_log(numbered(25))
        reader = LogFileReader(path)
        reader.load_initial(5)

        results = []
        for result in reader.iter_to_end(batch_size=8):
            results.append(result)
            reader.apply(result)

        assert [len(r.lines) for r in results] == [8, 8, 4]
        assert [r.complete for r in results] == [False, False, True]
        assert len(reader.store) == 25
        assert reader.is_fully_loaded
        assert reader.file_pos == os.path.getsize(path)

    def test_iter_to_end_when_already_loaded(self, write_log):
        path = write_log(numbered(3))
        reader = LogFileReader(path)
        reader.load_initial(10)
        results = list(reader.iter_to_end())
        assert len(results) == 1
        assert results[0].complete
        assert results[0].lines == ()

    def test_load_all_without_initial_load(self, write_log):
        path = write_log(numbered(40))
        reader = LogFileReader(path)
        reader.load_all()
        assert len(reader.store) == 40
        assert reader.is_fully_loaded
        assert reader.file_pos == os.path.getsize(path)

    def test_load_all_missing_file(self, temp_dir_manager):
        reader = LogFileReader(os.path.join(temp_dir_manager, "missing.log"))
        with pytest.raises(SourceAccessError):
            reader.load_all()


class TestEstimateTotal:

    def test_uniform_lines_estimate_exactly(self, write_log):
        # Every line is ten bytes including its terminator
        path = write_log(['{"n":%3d}' % i for i in range(1, 301)])
        reader = LogFileReader(path)
        reader.load_initial(50)
        assert reader.estimate_total(100) == 300
        reader.close()

    def test_empty_file_estimates_zero(self, write_log):
        path = write_log([])
        assert LogFileReader(path).estimate_total(100) == 0

    def test_unreadable_file_falls_back_to_store_size(self, temp_dir_manager):
        reader = LogFileReader(os.path.join(temp_dir_manager, "missing.log"))
        assert reader.estimate_total(100) == 0


class TestAppendTail:

    def test_completed_fragment_replaces_last_line(self, write_log):
        path = write_log(['{"a":1}', '{"a":2'], terminate_last=False)
        reader = LogFileReader(path)
        reader.load_initial(10)
        assert not reader.store[-1].is_valid

        parser = LogParser()
        completed = parser.parse_lines([b'{"a":2}\n', b'{"a":3}\n'], 2)
        assert reader.append_tail(completed) == 1
        assert [(l.line_number, l.json_data) for l in reader.store] == \
            [(1, {"a": 1}), (2, {"a": 2}), (3, {"a": 3})]
        assert reader.fragment_size == 0

    def test_fragment_seen_by_load_to_end(self, write_log):
        path = write_log(['{"a":%d}' % i for i in range(1, 6)] + ['{"a":'], terminate_last=False)
        reader = LogFileReader(path)
        reader.load_initial(2)
        reader.load_all()
        assert reader.tail_start == (os.path.getsize(path) - len('{"a":'), 5)
