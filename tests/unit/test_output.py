"""Unit tests for the output sink and the ProPresenter client."""

import asyncio
import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import aiohttp
import pytest

from scripturecue.models.settings import ProPresenterConnection
from scripturecue.output.propresenter import ProPresenterClient, ProPresenterError
from scripturecue.output.sink import (
    LiveOutputSink,
    PresentationTarget,
    PresentationTriggerResult,
    write_text_atomic,
)


def async_context(value):
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=value)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def http_session(status=204, text=""):
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    session = MagicMock()
    session.post = Mock(return_value=async_context(response))
    return session


@pytest.fixture
def connections():
    return [
        ProPresenterConnection(id="main", api_url="http://10.0.0.5:1025", name="Main"),
        ProPresenterConnection(id="lobby", api_url="http://10.0.0.6:1025"),
        ProPresenterConnection(id="spare", api_url="http://10.0.0.7:1025", enabled=False),
    ]


@pytest.mark.unit
class TestFileOutput:
    """Test cases for atomic file writes."""

    def test_write_creates_directories(self, temp_data_dir):
        path = Path(temp_data_dir) / "live" / "nested" / "verse.txt"

        write_text_atomic(str(path), "The LORD is my shepherd")

        assert path.read_text(encoding="utf-8") == "The LORD is my shepherd"

    def test_write_replaces_and_leaves_no_temp_files(self, temp_data_dir):
        path = Path(temp_data_dir) / "verse.txt"
        write_text_atomic(str(path), "first")
        write_text_atomic(str(path), "")

        assert path.read_text(encoding="utf-8") == ""
        assert os.listdir(temp_data_dir) == ["verse.txt"]

    def test_sink_write(self, temp_data_dir):
        path = Path(temp_data_dir) / "reference.txt"

        assert asyncio.run(LiveOutputSink().write_text_to_file(str(path), "John 3:16")) is True
        assert path.read_text(encoding="utf-8") == "John 3:16"

    def test_sink_write_failure_returns_false(self, temp_data_dir):
        # The target is a directory, so the final rename fails
        target = Path(temp_data_dir) / "taken"
        target.mkdir()
        (target / "child").write_text("x", encoding="utf-8")

        assert asyncio.run(LiveOutputSink().write_text_to_file(str(target), "John 3:16")) is False
        assert sorted(os.listdir(temp_data_dir)) == ["taken"]

    def test_unencodable_text_leaves_no_temp_file(self, temp_data_dir):
        path = Path(temp_data_dir) / "verse.txt"

        with pytest.raises(UnicodeEncodeError):
            write_text_atomic(str(path), "bad \ud800 text")

        assert os.listdir(temp_data_dir) == []
        assert asyncio.run(LiveOutputSink().write_text_to_file(str(path), "bad \ud800 text")) is False
        assert os.listdir(temp_data_dir) == []

    def test_sink_without_presentation_client(self):
        result = asyncio.run(LiveOutputSink().trigger_presentation(PresentationTarget("abc"), None, 1, 0))

        assert result == PresentationTriggerResult()

    def test_sink_forwards_to_client(self):
        client = Mock()
        client.trigger_presentation = AsyncMock(return_value=PresentationTriggerResult(success_count=2))

        result = asyncio.run(LiveOutputSink(client).trigger_presentation(PresentationTarget("abc"), ["main"], 2, 50))

        assert result.success_count == 2
        client.trigger_presentation.assert_awaited_once_with(PresentationTarget("abc"), ["main"], 2, 50)


@pytest.mark.unit
class TestProPresenterClient:
    """Test cases for ProPresenterClient."""

    def test_select_connections(self, connections):
        client = ProPresenterClient(connections)

        assert [c.id for c in client.select_connections(None)] == ["main", "lobby"]
        assert [c.id for c in client.select_connections(["lobby", "spare"])] == ["lobby"]

    def test_trigger_slide_url(self, connections):
        session = http_session()
        client = ProPresenterClient(connections)

        asyncio.run(client.trigger_slide(session, connections[0], PresentationTarget("abc-123", 2)))

        assert session.post.call_args.args[0] == "http://10.0.0.5:1025/v1/presentation/abc-123/slide/2/trigger"

    def test_trigger_slide_http_error(self, connections):
        client = ProPresenterClient(connections)

        with pytest.raises(ProPresenterError, match="Main: HTTP 404"):
            asyncio.run(client.trigger_slide(http_session(404, "no such presentation"), connections[0],
                                             PresentationTarget("abc-123")))

    def test_trigger_slide_connection_error(self, connections):
        session = MagicMock()
        session.post = Mock(side_effect=aiohttp.ClientConnectionError("refused"))
        client = ProPresenterClient(connections)

        with pytest.raises(ProPresenterError, match="lobby"):
            asyncio.run(client.trigger_slide(session, connections[1], PresentationTarget("abc-123")))

    def test_trigger_presentation_counts(self, connections):
        client = ProPresenterClient(connections)

        async def trigger_slide(session, connection, target):
            if connection.id == "lobby":
                raise ProPresenterError("lobby: HTTP 500")

        client.trigger_slide = AsyncMock(side_effect=trigger_slide)

        with patch("scripturecue.output.propresenter.aiohttp.ClientSession", return_value=async_context(Mock())):
            result = asyncio.run(client.trigger_presentation(PresentationTarget("abc-123"), None, 2, 0))

        assert result.success_count == 1
        assert result.fail_count == 1
        assert result.errors == ["lobby: HTTP 500"]
        # Two clicks on main, the lobby gives up after its first failure
        assert client.trigger_slide.await_count == 3

    def test_no_clicks_no_requests(self, connections):
        client = ProPresenterClient(connections)
        client.trigger_slide = AsyncMock()

        result = asyncio.run(client.trigger_presentation(PresentationTarget("abc-123"), None, 0))

        assert result == PresentationTriggerResult()
        client.trigger_slide.assert_not_awaited()

    def test_unexpected_errors_propagate(self, connections):
        client = ProPresenterClient(connections)
        client.trigger_slide = AsyncMock(side_effect=RuntimeError("bug"))

        with patch("scripturecue.output.propresenter.aiohttp.ClientSession", return_value=async_context(Mock())):
            with pytest.raises(RuntimeError):
                asyncio.run(client.trigger_presentation(PresentationTarget("abc-123"), ["main"], 1))
