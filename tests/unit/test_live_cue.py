"""Unit tests for LiveCueController."""

import asyncio
from pathlib import Path
from unittest.mock import call

import pytest

from scripturecue.models.live import IDLE_STATE
from scripturecue.models.settings import LiveCueSettings, PresentationActivation
from scripturecue.output.sink import LiveOutputSink, PresentationTarget
from scripturecue.services.live_cue import LiveCueController


def written(sink):
    """(path name, content) for every write the sink received."""
    return [(Path(c.args[0]).name, c.args[1]) for c in sink.write_text_to_file.call_args_list]


def blank_writes(sink):
    return [w for w in written(sink) if w[1] == ""]


@pytest.mark.unit
class TestLiveCueController:
    """Test cases for LiveCueController."""

    def test_go_live_writes_both_files(self, mock_sink, live_settings, make_reference):
        ref = make_reference("John 3:16", verse_text="For God so loved the world")

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(ref)
            return controller

        controller = asyncio.run(run())

        assert controller.is_live
        assert controller.state.live_reference_id == ref.id
        assert controller.live_reference is ref
        assert written(mock_sink) == [
            ("verse.txt", "For God so loved the world"),
            ("reference.txt", "John 3:16"),
        ]
        mock_sink.trigger_presentation.assert_not_called()

    def test_at_most_one_reference_live(self, mock_sink, live_settings, make_reference):
        first, second = make_reference("John 3:16"), make_reference("Romans 8:28")
        events = []

        async def run():
            controller = LiveCueController(mock_sink, live_settings, on_change=events.append)
            await controller.go_live(first)
            await controller.go_live(second)
            return controller

        controller = asyncio.run(run())

        assert controller.state.live_reference_id == second.id
        assert [e.reference.display_ref for e in events] == ["John 3:16", "Romans 8:28"]
        assert written(mock_sink)[-1] == ("reference.txt", "Romans 8:28")

    def test_zero_delay_never_clears(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 0

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(make_reference())
            assert controller.has_pending_clear is False
            await asyncio.sleep(0.05)
            return controller

        controller = asyncio.run(run())

        assert controller.is_live
        assert controller.state.auto_clear_deadline_ms is None
        assert blank_writes(mock_sink) == []

    def test_no_auto_clear_when_disabled(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 10
        live_settings.clear_text_after_live = False

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(make_reference())
            await asyncio.sleep(0.05)
            return controller

        controller = asyncio.run(run())

        assert controller.is_live
        assert blank_writes(mock_sink) == []

    def test_auto_clear_after_delay(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 20
        events = []

        async def run():
            controller = LiveCueController(mock_sink, live_settings, on_change=events.append)
            await controller.go_live(make_reference())
            assert controller.has_pending_clear
            assert controller.state.auto_clear_deadline_ms is not None
            await asyncio.sleep(0.15)
            return controller

        controller = asyncio.run(run())

        assert controller.state == IDLE_STATE
        assert controller.live_reference is None
        assert blank_writes(mock_sink) == [("verse.txt", ""), ("reference.txt", "")]
        assert events[-1].state == IDLE_STATE

    def test_replacing_live_cancels_previous_timer(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 40
        first, second = make_reference("John 3:16"), make_reference("Romans 8:28")

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(first)
            await asyncio.sleep(0.02)
            await controller.go_live(second)
            await asyncio.sleep(0.025)
            # The first timer would have fired by now
            assert controller.state.live_reference_id == second.id
            await asyncio.sleep(0.15)
            return controller

        controller = asyncio.run(run())

        assert controller.is_live is False
        assert len(blank_writes(mock_sink)) == 2

    def test_take_off_cancels_timer(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 30

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(make_reference())
            await controller.take_off_live()
            assert controller.has_pending_clear is False
            await asyncio.sleep(0.1)
            return controller

        controller = asyncio.run(run())

        assert controller.state == IDLE_STATE
        assert len(blank_writes(mock_sink)) == 2

    def test_take_off_clears_real_files(self, live_settings, make_reference):
        sink = LiveOutputSink()
        ref = make_reference("Psalms 23:1", verse_text="The LORD is my shepherd; I shall not want.")
        text_path = Path(live_settings.text_file_path)
        reference_path = Path(live_settings.reference_file_path)

        async def run():
            controller = LiveCueController(sink, live_settings)
            await controller.go_live(ref)
            assert text_path.read_text(encoding="utf-8") == ref.verse_text
            assert reference_path.read_text(encoding="utf-8") == "Psalms 23:1"
            await controller.take_off_live()

        asyncio.run(run())

        assert text_path.read_text(encoding="utf-8") == ""
        assert reference_path.read_text(encoding="utf-8") == ""

    def test_take_off_keeps_files_when_configured(self, mock_sink, live_settings, make_reference):
        live_settings.activation = PresentationActivation(
            presentation_uuid="abc-123", take_off_clicks=2, clear_text_file_on_take_off=False,
        )

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(make_reference())
            await controller.take_off_live()
            return controller

        controller = asyncio.run(run())

        assert controller.is_live is False
        assert blank_writes(mock_sink) == []
        assert mock_sink.trigger_presentation.await_args_list[-1] == call(
            PresentationTarget("abc-123", 0), None, 2, 100,
        )

    def test_activation_clicks_on_go_live(self, mock_sink, live_settings, make_reference):
        live_settings.activation = PresentationActivation(
            presentation_uuid="abc-123", slide_index=3, activation_clicks=2, inter_click_delay_ms=50,
        )
        live_settings.connection_ids = ["main"]

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(make_reference())
            await controller.take_off_live()

        asyncio.run(run())

        # take_off_clicks defaults to zero, so only the activation triggers
        mock_sink.trigger_presentation.assert_awaited_once_with(
            PresentationTarget("abc-123", 3), ["main"], 2, 50,
        )

    def test_no_timer_when_taken_off_during_writes(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 20
        holder = {}

        async def write(path, content):
            if content == "John 3:16":
                holder["controller"].reset()
            return True

        mock_sink.write_text_to_file.side_effect = write

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            holder["controller"] = controller
            await controller.go_live(make_reference("John 3:16"))
            return controller

        controller = asyncio.run(run())

        assert controller.has_pending_clear is False
        assert controller.state == IDLE_STATE

    def test_failed_write_keeps_state(self, mock_sink, live_settings, make_reference):
        mock_sink.write_text_to_file.return_value = False
        ref = make_reference()

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(ref)
            return controller

        controller = asyncio.run(run())

        assert controller.state.live_reference_id == ref.id

    def test_missing_output_path_skips_writes_and_timer(self, mock_sink, make_reference):
        settings = LiveCueSettings(clear_text_delay_ms=10)

        async def run():
            controller = LiveCueController(mock_sink, settings)
            await controller.go_live(make_reference())
            return controller

        controller = asyncio.run(run())

        mock_sink.write_text_to_file.assert_not_called()
        assert controller.has_pending_clear is False
        assert controller.is_live

    def test_reset_does_no_io(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 1000

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(make_reference())
            mock_sink.write_text_to_file.reset_mock()
            controller.reset()
            return controller

        controller = asyncio.run(run())

        assert controller.state == IDLE_STATE
        assert controller.has_pending_clear is False
        mock_sink.write_text_to_file.assert_not_called()

    def test_overlapping_go_live_arms_one_timer(self, mock_sink, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 50
        ref = make_reference("John 3:16")

        async def slow_write(path, content):
            await asyncio.sleep(0.001)
            return True

        mock_sink.write_text_to_file.side_effect = slow_write

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await asyncio.gather(controller.go_live(ref), controller.go_live(ref))
            pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
            controller.reset()
            await asyncio.sleep(0)
            return controller, pending

        controller, pending = asyncio.run(run())

        assert len(pending) == 1
        # reset reached the only timer
        assert all(t.done() for t in pending)
        assert blank_writes(mock_sink) == []

    def test_unencodable_verse_still_writes_reference(self, live_settings, make_reference):
        live_settings.clear_text_delay_ms = 1000
        ref = make_reference("John 3:16", verse_text="bad \ud800 text")
        output_dir = Path(live_settings.output_path)

        async def run():
            controller = LiveCueController(LiveOutputSink(), live_settings)
            await controller.go_live(ref)
            has_timer = controller.has_pending_clear
            controller.reset()
            return controller, has_timer

        controller, has_timer = asyncio.run(run())

        assert sorted(p.name for p in output_dir.iterdir()) == ["reference.txt"]
        assert (output_dir / "reference.txt").read_text(encoding="utf-8") == "John 3:16"
        assert has_timer is True

    def test_raising_sink_does_not_skip_other_target(self, mock_sink, live_settings, make_reference):
        async def write(path, content):
            if Path(path).name == "verse.txt":
                raise RuntimeError("disk gone")
            return True

        mock_sink.write_text_to_file.side_effect = write
        live_settings.activation = PresentationActivation(presentation_uuid="abc-123")
        ref = make_reference("Romans 8:28")

        async def run():
            controller = LiveCueController(mock_sink, live_settings)
            await controller.go_live(ref)
            return controller

        controller = asyncio.run(run())

        assert written(mock_sink)[-1] == ("reference.txt", "Romans 8:28")
        assert controller.state.live_reference_id == ref.id
        mock_sink.trigger_presentation.assert_awaited_once()
