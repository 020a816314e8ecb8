"""Unit tests for SessionManager."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from scripturecue.models.session import SessionState, SourceKind
from scripturecue.models.settings import SessionConfig
from scripturecue.models.transcription import TranscriptAnalysis, TranscriptEvent, TranscriptKind
from scripturecue.services.live_cue import LiveCueController
from scripturecue.services.session_manager import SessionManager, new_session_id
from scripturecue.transcription.base import AbstractSegmentSource, SourceHandle, SourceStartError
from scripturecue.transcription.publisher import STATUS


class FakeSource(AbstractSegmentSource):
    """Publishes a fixed list of final segments, then ends."""

    source_kind = SourceKind.LOCAL

    def __init__(self, publisher, texts=(), fail=None):
        super().__init__(publisher)
        self.texts = list(texts)
        self.fail = fail
        self.stopped = False

    async def start(self, session):
        if self.fail:
            raise SourceStartError(self.fail)
        self.report_status(SessionState.RECORDING, "fake source")
        handle = SourceHandle(session_id=session.session_id, source_kind=self.source_kind)
        handle.task = asyncio.create_task(self._run())
        return handle

    async def _run(self):
        for text in self.texts:
            self.publisher.publish_event(TranscriptEvent(kind=TranscriptKind.FINAL, text=text, timestamp_ms=0))
            await asyncio.sleep(0)

    async def stop(self, handle):
        self.stopped = True
        await self._cancel_task(handle)


class Fixture:
    """SessionManager with a fake source factory and a status recorder."""

    def __init__(self, detector, sink, detection, ai_settings, live_settings, texts=(), fail=None,
                 factory_error=None):
        analyzer = Mock()
        analyzer.analyze = AsyncMock(return_value=TranscriptAnalysis())
        self.controller = LiveCueController(sink, live_settings)
        self.sources = []
        self.statuses = []
        self.factory_calls = []

        def factory(kind, config, publisher, engine):
            self.factory_calls.append(kind)
            if factory_error:
                raise factory_error
            source = FakeSource(publisher, texts, fail)
            self.sources.append(source)
            return source

        def on_status(event):
            self.statuses.append((event.session_id, event.state))

        def observe(channel):
            channel.subscribe(STATUS, on_status)

        self.manager = SessionManager(
            SessionConfig(), detection, ai_settings, detector, analyzer, self.controller,
            source_factory=factory,
        )
        self.manager.channel_observers.append(observe)

    def states(self, session_id):
        return [state for sid, state in self.statuses if sid == session_id]


@pytest.fixture
def make_fixture(detector, mock_sink, detection_settings, ai_settings, live_settings):
    def _make(**kwargs):
        return Fixture(detector, mock_sink, detection_settings, ai_settings, live_settings, **kwargs)
    return _make


@pytest.mark.unit
class TestSessionManager:
    """Test cases for SessionManager."""

    def test_new_session_id(self):
        session_id = new_session_id()

        assert session_id.startswith("session_")
        assert session_id != new_session_id()

    def test_start_session_runs_pipeline(self, make_fixture):
        async def run():
            f = make_fixture(texts=["Turn with me to John chapter 3 verse 16"])
            session = await f.manager.start_session()
            await f.manager.wait_until_source_ends()
            references = [r.display_ref for r in f.manager.pipeline.references]
            await f.manager.stop_session()
            return f, session, references

        f, session, references = asyncio.run(run())

        assert references == ["John 3:16"]
        assert f.factory_calls == [SourceKind.LOCAL]
        assert f.states(session.session_id) == [
            SessionState.CONNECTING,
            SessionState.RECORDING,
            SessionState.IDLE,
        ]
        assert session.state is SessionState.IDLE
        assert f.sources[0].stopped is True

    def test_session_state_follows_status_events(self, make_fixture):
        async def run():
            f = make_fixture()
            session = await f.manager.start_session(SourceKind.BROWSER_RELAY)
            assert f.manager.is_active
            assert session.state is SessionState.RECORDING
            assert session.status_message == "fake source"
            await f.manager.stop_session()
            return f, session

        f, session = asyncio.run(run())

        assert f.factory_calls == [SourceKind.BROWSER_RELAY]
        assert session.source_kind is SourceKind.BROWSER_RELAY
        assert f.manager.is_active is False

    def test_source_start_failure(self, make_fixture):
        async def run():
            f = make_fixture(fail="relay unreachable")
            session = await f.manager.start_session()
            pipeline = f.manager.pipeline
            return f, session, pipeline

        f, session, pipeline = asyncio.run(run())

        assert session.state is SessionState.ERROR
        assert session.status_message == "relay unreachable"
        assert pipeline.active is False
        assert f.manager.source is None

    def test_factory_error(self, make_fixture):
        async def run():
            f = make_fixture(factory_error=ValueError("Replay engine requires transcription.transcript_path"))
            return await f.manager.start_session()

        session = asyncio.run(run())

        assert session.state is SessionState.ERROR
        assert "transcript_path" in session.status_message

    def test_new_session_replaces_previous(self, make_fixture):
        async def run():
            f = make_fixture()
            first = await f.manager.start_session()
            first_channel = f.manager.channel
            second = await f.manager.start_session()
            await f.manager.stop_session()
            return f, first, first_channel, second

        f, first, first_channel, second = asyncio.run(run())

        assert first.session_id != second.session_id
        assert first.state is SessionState.IDLE
        assert first_channel.closed is True
        assert f.sources[0].stopped is True
        assert f.states(first.session_id)[-1] is SessionState.IDLE

    def test_stop_resets_live_cue(self, make_fixture, make_reference):
        async def run():
            f = make_fixture()
            await f.manager.start_session()
            await f.controller.go_live(make_reference())
            await f.manager.stop_session()
            return f

        f = asyncio.run(run())

        assert f.controller.is_live is False
        assert f.manager.channel is None
        assert f.manager.pipeline is None

    def test_stop_without_session(self, make_fixture):
        async def run():
            f = make_fixture()
            await f.manager.stop_session()
            return f

        f = asyncio.run(run())

        assert f.statuses == []

    def test_clear_transcript(self, make_fixture, make_reference):
        async def run():
            f = make_fixture(texts=["Romans 8:28"])
            f.manager.clear_transcript()
            await f.manager.start_session()
            await f.manager.wait_until_source_ends()
            assert len(f.manager.pipeline.references) == 1
            f.manager.clear_transcript()
            references = list(f.manager.pipeline.references)
            await f.manager.stop_session()
            return references

        assert asyncio.run(run()) == []
