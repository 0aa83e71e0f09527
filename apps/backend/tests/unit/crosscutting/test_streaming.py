"""
Name: Artifact Streaming Tests

Responsibilities:
  - ClosingStream closes the storage handle exactly once
  - iter_stream releases the handle on completion, failure and disconnect
  - Inline Content-Disposition survives non-ASCII file names
"""

import pytest
from conftest import FakeHandle

from research_repo.crosscutting.metrics import open_streams
from research_repo.crosscutting.streaming import (
    OUTCOME_ABORTED,
    OUTCOME_COMPLETED,
    OUTCOME_FAILED,
    OUTCOME_RELEASED,
    ClosingStream,
    content_disposition_inline,
    inline_file_response,
    iter_stream,
)

pytestmark = pytest.mark.unit

PAYLOAD = b"0123456789" * 10


class _ExplodingHandle(FakeHandle):
    def read(self, size=-1):
        if self.tell() > 0:
            raise OSError("read failed")
        return super().read(size)


class _FakeRequest:
    """Disconnects after `after` polls."""

    def __init__(self, after: int) -> None:
        self._polls = 0
        self._after = after

    async def is_disconnected(self) -> bool:
        self._polls += 1
        return self._polls > self._after


class TestClosingStream:
    def test_close_is_idempotent(self):
        handle = FakeHandle(PAYLOAD)
        stream = ClosingStream(handle)

        assert stream.close(OUTCOME_COMPLETED) is True
        assert stream.close(OUTCOME_RELEASED) is False
        assert handle.close_calls == 1
        assert stream.outcome == OUTCOME_COMPLETED

    def test_gauge_returns_to_baseline(self):
        before = open_streams()
        stream = ClosingStream(FakeHandle(PAYLOAD))
        assert open_streams() == before + 1
        stream.close()
        stream.close()
        assert open_streams() == before

    def test_close_error_is_swallowed_and_counted(self):
        class _Stubborn(FakeHandle):
            def close(self):
                super().close()
                raise OSError("already gone")

        before = open_streams()
        stream = ClosingStream(_Stubborn(PAYLOAD))
        assert stream.close() is True
        assert stream.closed
        assert open_streams() == before


class TestIterStream:
    async def test_completed(self):
        handle = FakeHandle(PAYLOAD)
        stream = ClosingStream(handle)

        chunks = [chunk async for chunk in iter_stream(stream, chunk_size=32)]

        assert b"".join(chunks) == PAYLOAD
        assert len(chunks) == 4
        assert stream.outcome == OUTCOME_COMPLETED
        assert handle.close_calls == 1

    async def test_client_disconnect_aborts(self):
        handle = FakeHandle(PAYLOAD)
        stream = ClosingStream(handle)

        chunks = [
            chunk
            async for chunk in iter_stream(
                stream, chunk_size=10, request=_FakeRequest(after=2)
            )
        ]

        assert len(chunks) == 2
        assert stream.outcome == OUTCOME_ABORTED
        assert handle.close_calls == 1

    async def test_read_failure_closes_and_reraises(self):
        handle = _ExplodingHandle(PAYLOAD)
        stream = ClosingStream(handle)

        with pytest.raises(OSError):
            async for _ in iter_stream(stream, chunk_size=10):
                pass

        assert stream.outcome == OUTCOME_FAILED
        assert handle.close_calls == 1

    async def test_consumer_stops_early(self):
        handle = FakeHandle(PAYLOAD)
        stream = ClosingStream(handle)
        gen = iter_stream(stream, chunk_size=10)

        assert await gen.__anext__() == PAYLOAD[:10]
        await gen.aclose()

        assert stream.outcome == OUTCOME_ABORTED
        assert handle.close_calls == 1


class TestInlineHeaders:
    def test_ascii_name(self):
        assert (
            content_disposition_inline("paper.pdf")
            == "inline; filename*=UTF-8''paper.pdf"
        )

    def test_unicode_name_is_percent_encoded(self):
        header = content_disposition_inline("Niño en la playa.pdf")
        assert header == "inline; filename*=UTF-8''Ni%C3%B1o%20en%20la%20playa.pdf"
        header.encode("latin-1")

    def test_blank_name_falls_back(self):
        assert content_disposition_inline("  ") == (
            "inline; filename*=UTF-8''document.pdf"
        )

    def test_response_headers(self):
        stream = ClosingStream(FakeHandle(PAYLOAD))
        response = inline_file_response(stream, file_name="a.pdf", content_type="")
        try:
            assert response.media_type == "application/pdf"
            assert response.headers["cache-control"] == "private, max-age=0, no-store"
            assert response.headers["x-content-type-options"] == "nosniff"
            assert response.headers["content-disposition"].startswith("inline;")
        finally:
            stream.close()
