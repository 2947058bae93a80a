# tests/unit/api/test_unit_facade.py — v1
"""Tests for api/facade.py."""

from __future__ import annotations

import io

import pytest

from repodoc.api.facade import generate_readme, generate_readme_for_directory, stream_to
from repodoc.config.settings import Settings
from repodoc.core.models import SourceFile
from repodoc.pipeline.driver import PipelineDriver, PipelineInputError, StreamTransportError
from repodoc.pipeline.state import RunStage


class _BrokenSink(io.StringIO):
    def write(self, s):
        raise BrokenPipeError("client went away")


class TestGenerateReadme:
    @pytest.mark.asyncio
    async def test_returns_document_only(self, fake_llm_cls):
        settings = Settings(_env_file=None, stream_batch_analysis=True)
        llm = fake_llm_cls(stream_script=[["batch notes"]], complete_result="# Final README")
        readme = await generate_readme(
            [SourceFile(path="a.py", content="x = 1")], settings, llm_factory=lambda c: llm,
        )
        assert readme == "# Final README"

    @pytest.mark.asyncio
    async def test_invalid_input(self, settings, llm_factory):
        with pytest.raises(PipelineInputError):
            await generate_readme(None, settings, llm_factory=llm_factory)

    @pytest.mark.asyncio
    async def test_for_directory(self, tmp_path, settings, fake_llm, llm_factory):
        (tmp_path / "main.py").write_text("print('hello')\n", encoding="utf-8")
        readme = await generate_readme_for_directory(tmp_path, settings, llm_factory=llm_factory)
        assert readme == "# Project\n\nGenerated README."
        assert "Path: main.py" in fake_llm.stream_calls[0]["prompt"]


class TestStreamTo:
    @pytest.mark.asyncio
    async def test_writes_everything(self, settings, llm_factory):
        sink = io.StringIO()
        driver = PipelineDriver(settings, llm_factory)
        written = await stream_to(driver.run([SourceFile(path="a.py", content="x")]), sink)
        assert sink.getvalue() == "# Project\n\nGenerated README."
        assert written == len(sink.getvalue())

    @pytest.mark.asyncio
    async def test_broken_sink_aborts_run(self, fake_llm_cls):
        settings = Settings(_env_file=None, stream_batch_analysis=True)
        llm = fake_llm_cls(stream_script=[["one", "two"]])
        driver = PipelineDriver(settings, lambda c: llm)

        with pytest.raises(StreamTransportError, match="client went away"):
            await stream_to(driver.run([SourceFile(path="a.py", content="x")]), _BrokenSink())

        assert llm.closed_streams == 1
        assert llm.complete_calls == []
        assert driver.last_run.stage is RunStage.FAILED
