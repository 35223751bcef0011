import asyncio

import pytest

from SIFT.config import ViewerSettings
from SIFT.UI.app import SiftApp
from SIFT.UI.views.log_viewer import LogFileReader, LogSession
from SIFT.UI.views.log_viewer.view_state import DetailMode, FilterEntryMode, NormalMode


@pytest.fixture
def settings():
    return ViewerSettings(initial_chunk_size=100, tail_poll_interval=0.05, watch_events=False)


def open_session(path, settings):
    reader = LogFileReader(path)
    reader.load_initial(settings.initial_chunk_size)
    return LogSession(reader, settings, reader.estimate_total(settings.estimate_sample_size))


class TestSiftApp:

    def test_basic_navigation(self, write_log, settings):
        session = open_session(write_log([{"level": "info"}, {"level": "error"}, "oops"]), settings)

        async def scenario():
            app = SiftApp(session, settings)
            async with app.run_test(size=(100, 20)) as pilot:
                await pilot.pause()
                assert session.view.size_known
                assert session.view.page_size == 19

                await pilot.press("down")
                assert session.selected_line_number == 2

                await pilot.press("enter")
                assert isinstance(session.view.mode, DetailMode)
                await pilot.press("escape")
                assert isinstance(session.view.mode, NormalMode)

                await pilot.press("q")
                await pilot.pause()
            return app.return_value

        assert asyncio.run(scenario()) == 0

    def test_filter_entry(self, write_log, settings):
        session = open_session(write_log([{"n": 0}, {"n": 1}, {"n": 0}]), settings)

        async def scenario():
            app = SiftApp(session, settings)
            async with app.run_test(size=(100, 20)) as pilot:
                await pilot.press("f")
                assert isinstance(session.view.mode, FilterEntryMode)
                await pilot.press(".", "n", "enter")
                assert [l.line_number for l in session.visible] == [2]
                await pilot.press("q")

        asyncio.run(scenario())

    def test_end_loads_in_background(self, write_log, settings):
        session = open_session(write_log([{"n": i} for i in range(300)]), settings)

        async def scenario():
            app = SiftApp(session, settings)
            async with app.run_test(size=(100, 20)) as pilot:
                await pilot.press("end")
                await app.workers.wait_for_complete()
                await pilot.pause()
                assert session.reader.is_fully_loaded
                assert session.selected_line_number == 300
                await pilot.press("q")

        asyncio.run(scenario())

    def test_tail_follow(self, write_log, append_log, settings):
        path = write_log([{"n": 1}, {"n": 2}])
        session = open_session(path, settings)

        async def scenario():
            app = SiftApp(session, settings)
            async with app.run_test(size=(100, 20)) as pilot:
                await pilot.press("t")
                assert session.view.tail_mode

                append_log(path, [{"n": 3}, {"n": 4}])
                for _ in range(40):
                    await pilot.pause(0.05)
                    if session.selected_line_number == 4:
                        break
                assert session.selected_line_number == 4
                await pilot.press("q")

        asyncio.run(scenario())
