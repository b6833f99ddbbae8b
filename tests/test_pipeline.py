import httpx
import pytest
from playwright.async_api import Error as PlaywrightError

import pipeline.main as cli
from common.errors import GenerationError, NetworkError, NoTracksAvailable, Unavailable
from common.schemas import CaptionSegment
from injector.document import HtmlDocument
from pipeline.main import extract_video_id, main
from pipeline.orchestrator import Pipeline, Stage
from pipeline.remote import RemoteCaptionSource, RemoteGenerationClient

STUDIO_PAGE = """
<div class="input-container title">
  <ytcp-social-suggestions-textbox required><div contenteditable="true"></div></ytcp-social-suggestions-textbox>
</div>
<div class="input-container description">
  <ytcp-social-suggestions-textbox><div contenteditable="true"></div></ytcp-social-suggestions-textbox>
</div>
"""

TRANSCRIPT = [
    CaptionSegment(start=0, duration=2, text="Hello"),
    CaptionSegment(start=2, duration=3, text="world"),
]


class StubCaptions:
    def __init__(self, primary=None, fallback=None):
        self.primary = primary
        self.fallback = fallback
        self.calls = []

    async def acquire(self, video_id, lang="en", use_fallback=False):
        self.calls.append("fallback" if use_fallback else "primary")
        result = self.fallback if use_fallback else self.primary
        if isinstance(result, Exception):
            raise result
        return result


class StubGenerator:
    def __init__(self, reply="Title: Hi\n\nDescription: Bye"):
        self.reply = reply
        self.prompts = []

    async def generate(self, prompt, credential):
        self.prompts.append((prompt, credential))
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


def _pipeline(captions, generator, stages=None):
    return Pipeline(
        captions,
        generator,
        prompt_template="Write a title",
        credential="sk-test",
        on_stage=(lambda stage, run: stages.append(stage)) if stages is not None else None,
    )


class TestPipeline:
    @pytest.mark.asyncio
    async def test_end_to_end(self):
        stages = []
        generator = StubGenerator()
        doc = HtmlDocument(STUDIO_PAGE)

        run = await _pipeline(StubCaptions(primary=TRANSCRIPT), generator, stages).run("abc123def45", doc)

        assert run.ok
        assert run.failure is None
        assert (run.content.title, run.content.description) == ("Hi", "Bye")
        assert all(r.success for r in run.injections)
        assert generator.prompts == [("Write a title\n\nTranscript:\nHello world", "sk-test")]
        assert stages == [
            Stage.acquiring_captions,
            Stage.assembling,
            Stage.generating,
            Stage.parsing,
            Stage.injecting,
            Stage.done,
        ]
        assert [b.get_text() for b in doc.soup.select('[contenteditable="true"]')] == ["Hi", "Bye"]

    @pytest.mark.asyncio
    async def test_without_document_skips_injection(self):
        stages = []
        run = await _pipeline(StubCaptions(primary=TRANSCRIPT), StubGenerator(), stages).run("abc123def45")
        assert run.ok
        assert run.injections == []
        assert Stage.injecting not in stages

    @pytest.mark.asyncio
    async def test_unavailable_primary_uses_fallback_once(self):
        captions = StubCaptions(primary=Unavailable("disabled"), fallback=TRANSCRIPT)
        run = await _pipeline(captions, StubGenerator()).run("abc123def45")
        assert run.ok
        assert run.used_fallback
        assert captions.calls == ["primary", "fallback"]

    @pytest.mark.asyncio
    async def test_fallback_failure_is_terminal(self):
        captions = StubCaptions(primary=Unavailable(), fallback=NoTracksAvailable())
        generator = StubGenerator()
        run = await _pipeline(captions, generator).run("abc123def45")

        assert run.state == Stage.errored
        assert run.failure.stage == Stage.acquiring_captions
        assert run.failure.error == "NoTracksAvailable"
        assert "acquiring_captions" in str(run.failure)
        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_network_error_does_not_trigger_fallback(self):
        captions = StubCaptions(primary=NetworkError("timeout"), fallback=TRANSCRIPT)
        run = await _pipeline(captions, StubGenerator()).run("abc123def45")
        assert run.failure.stage == Stage.acquiring_captions
        assert captions.calls == ["primary"]

    @pytest.mark.asyncio
    async def test_forced_fallback(self):
        captions = StubCaptions(primary=TRANSCRIPT, fallback=TRANSCRIPT)
        run = await _pipeline(captions, StubGenerator()).run("abc123def45", force_fallback=True)
        assert run.ok
        assert captions.calls == ["fallback"]

    @pytest.mark.asyncio
    async def test_generation_failure_reports_stage(self):
        stages = []
        generator = StubGenerator(reply=GenerationError("Rate limit reached"))
        run = await _pipeline(StubCaptions(primary=TRANSCRIPT), generator, stages).run("abc123def45")

        assert run.failure.stage == Stage.generating
        assert run.failure.reason == "Rate limit reached"
        assert stages[-1] == Stage.errored
        assert run.content is None

    @pytest.mark.asyncio
    async def test_unmarked_output_still_injects(self):
        doc = HtmlDocument(STUDIO_PAGE)
        generator = StubGenerator(reply="A plain title\nand a plain description")
        run = await _pipeline(StubCaptions(primary=TRANSCRIPT), generator).run("abc123def45", doc)
        assert run.ok
        assert run.content.title == "A plain title"

    @pytest.mark.asyncio
    async def test_missing_fields_are_not_terminal(self):
        doc = HtmlDocument("<p>not the editor</p>")
        run = await _pipeline(StubCaptions(primary=TRANSCRIPT), StubGenerator()).run("abc123def45", doc)
        assert run.ok
        assert [r.success for r in run.injections] == [False, False]


class TestRemoteClients:
    @pytest.mark.asyncio
    async def test_captions_roundtrip(self):
        def handler(request):
            assert request.url.path == "/api/captions/abc123def45"
            assert request.url.params["lang"] == "en"
            return httpx.Response(200, json={"success": True, "subtitles": [{"start": 0, "dur": 2, "text": "Hello"}]})

        source = RemoteCaptionSource("http://gateway.test/", transport=httpx.MockTransport(handler))
        segments = await source.acquire("abc123def45")
        assert segments == [CaptionSegment(start=0, duration=2, text="Hello")]

    @pytest.mark.asyncio
    async def test_unavailable_survives_http(self):
        def handler(request):
            return httpx.Response(404, json={"detail": {"error": "Unavailable", "message": "disabled"}})

        source = RemoteCaptionSource("http://gateway.test", transport=httpx.MockTransport(handler))
        with pytest.raises(Unavailable, match="disabled"):
            await source.acquire("abc123def45")

    @pytest.mark.asyncio
    async def test_generation_error_message(self):
        def handler(request):
            return httpx.Response(502, json={"detail": {"error": "GenerationError", "message": "quota"}})

        client = RemoteGenerationClient("http://gateway.test", transport=httpx.MockTransport(handler))
        with pytest.raises(GenerationError, match="quota"):
            await client.generate("prompt", "sk-test")

    @pytest.mark.asyncio
    async def test_fetch_fallback_route(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={"success": True, "subtitles": []})

        source = RemoteCaptionSource("http://gateway.test", transport=httpx.MockTransport(handler))
        assert await source.fetch_fallback("abc123def45") == []
        assert await source.fetch_primary("abc123def45") == []
        assert seen == ["/api/captions-fallback/abc123def45", "/api/captions/abc123def45"]

    @pytest.mark.asyncio
    async def test_html_interstitial_is_network_error(self):
        def handler(request):
            return httpx.Response(200, text="<html><body>Visit site</body></html>")

        source = RemoteCaptionSource("http://gateway.test", transport=httpx.MockTransport(handler))
        with pytest.raises(NetworkError, match="HTTP 200"):
            await source.acquire("abc123def45")

    @pytest.mark.asyncio
    async def test_non_object_captions_body(self):
        source = RemoteCaptionSource(
            "http://gateway.test", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[1, 2]))
        )
        with pytest.raises(NetworkError):
            await source.acquire("abc123def45")

    @pytest.mark.asyncio
    async def test_malformed_segments(self):
        body = {"success": True, "subtitles": [{"start": "soon", "text": "x"}]}
        source = RemoteCaptionSource(
            "http://gateway.test", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body))
        )
        with pytest.raises(NetworkError, match="malformed captions"):
            await source.acquire("abc123def45")

    @pytest.mark.asyncio
    async def test_html_interstitial_is_generation_error(self):
        def handler(request):
            return httpx.Response(200, text="<html><body>Visit site</body></html>")

        client = RemoteGenerationClient("http://gateway.test", transport=httpx.MockTransport(handler))
        with pytest.raises(GenerationError, match="HTTP 200"):
            await client.generate("prompt", "sk-test")

    @pytest.mark.asyncio
    async def test_interstitial_reported_by_pipeline_stage(self):
        def handler(request):
            return httpx.Response(200, text="<html>interstitial</html>")

        transport = httpx.MockTransport(handler)
        pipeline = Pipeline(
            RemoteCaptionSource("http://gateway.test", transport=transport),
            StubGenerator(),
            prompt_template="Write a title",
            credential="sk-test",
        )
        run = await pipeline.run("abc123def45")
        assert run.failure.stage == Stage.acquiring_captions
        assert run.failure.error == "NetworkError"


class TestCommandLine:
    def test_missing_html_file(self, tmp_path, capsys):
        code = main([
            "--settings", str(tmp_path / "settings.json"),
            "describe", "JMYQmGfTltY", "--html", str(tmp_path / "missing.html"),
        ])
        assert code == 1
        assert "✗ Error: Cannot read" in capsys.readouterr().err

    def test_browser_failure(self, tmp_path, capsys, monkeypatch):
        async def no_studio_tab(*args):
            raise RuntimeError("No YouTube Studio tab found in the connected browser")

        monkeypatch.setattr(cli, "_run_in_browser", no_studio_tab)
        code = main([
            "--settings", str(tmp_path / "settings.json"),
            "describe", "JMYQmGfTltY", "--cdp", "http://localhost:9222",
        ])
        assert code == 1
        assert "✗ Error: No YouTube Studio tab found" in capsys.readouterr().err

    def test_browser_connection_error(self, tmp_path, capsys, monkeypatch):
        async def refused(*args):
            raise PlaywrightError("connect ECONNREFUSED 127.0.0.1:9222")

        monkeypatch.setattr(cli, "_run_in_browser", refused)
        code = main([
            "--settings", str(tmp_path / "settings.json"),
            "describe", "JMYQmGfTltY", "--cdp", "http://localhost:9222",
        ])
        assert code == 1
        assert "ECONNREFUSED" in capsys.readouterr().err


class TestVideoId:
    def test_watch_url(self):
        assert extract_video_id("https://www.youtube.com/watch?v=JMYQmGfTltY&t=10") == "JMYQmGfTltY"

    def test_bare_id(self):
        assert extract_video_id("JMYQmGfTltY") == "JMYQmGfTltY"

    def test_other_pages(self):
        assert extract_video_id("https://www.youtube.com/feed/subscriptions") is None
        assert extract_video_id("https://example.com/watch?v=JMYQmGfTltY") is None
