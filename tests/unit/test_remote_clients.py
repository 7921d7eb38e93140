"""Tests for the OpenAI clients and the image fetcher against a local HTTP server."""

import asyncio
from pathlib import Path

import pytest
from aiohttp import web

from speak2image.errors import RemoteServiceError, PolicyRejectionError, DownloadError
from speak2image.generation.fetcher import ImageFetcher
from speak2image.generation.image_generation import ImageGenerationClient
from speak2image.generation.transcription import TranscriptionClient

API_KEY = "sk-test"


@pytest.fixture
def audio_file(temp_data_dir):
    path = Path(temp_data_dir) / "session.wav"
    path.write_bytes(b"RIFF\x00\x00\x00\x00WAVEfmt ")
    return path


@pytest.mark.unit
class TestTranscriptionClient:

    def test_sends_file_and_returns_text(self, serve, audio_file):
        received = {}

        async def translations(request):
            received["auth"] = request.headers.get("Authorization")
            form = await request.post()
            received["model"] = form["model"]
            received["response_format"] = form["response_format"]
            received["filename"] = form["file"].filename
            received["content"] = form["file"].file.read()
            return web.Response(text=" a red bicycle leaning against a fence\n")

        async def scenario():
            async with serve([web.post("/v1/audio/translations", translations)]) as root:
                client = TranscriptionClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=5)
                return await client.transcribe(audio_file)

        text = asyncio.run(scenario())

        assert text == " a red bicycle leaning against a fence\n"
        assert received == {
            "auth": f"Bearer {API_KEY}",
            "model": "whisper-1",
            "response_format": "text",
            "filename": "session.wav",
            "content": audio_file.read_bytes(),
        }

    def test_error_status(self, serve, audio_file):
        async def translations(request):
            return web.Response(status=500, text="upstream failure")

        async def scenario():
            async with serve([web.post("/v1/audio/translations", translations)]) as root:
                client = TranscriptionClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=5)
                await client.transcribe(audio_file)

        with pytest.raises(RemoteServiceError, match="500"):
            asyncio.run(scenario())

    def test_timeout(self, serve, audio_file):
        async def translations(request):
            await asyncio.sleep(0.5)
            return web.Response(text="too late")

        async def scenario():
            async with serve([web.post("/v1/audio/translations", translations)]) as root:
                client = TranscriptionClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=0.1)
                await client.transcribe(audio_file)

        with pytest.raises(RemoteServiceError, match="timeout"):
            asyncio.run(scenario())

    def test_missing_recording(self, temp_data_dir):
        client = TranscriptionClient(API_KEY, base_url="http://127.0.0.1:9/v1", timeout_seconds=5)
        missing = Path(temp_data_dir) / "gone.wav"

        with pytest.raises(RemoteServiceError, match="gone.wav"):
            asyncio.run(client.transcribe(missing))

    def test_undecodable_body(self, serve, audio_file):
        async def translations(request):
            return web.Response(body=b"\xff\xfe\xfa", content_type="text/plain", charset="utf-8")

        async def scenario():
            async with serve([web.post("/v1/audio/translations", translations)]) as root:
                client = TranscriptionClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=5)
                await client.transcribe(audio_file)

        with pytest.raises(RemoteServiceError, match="undecodable"):
            asyncio.run(scenario())

    def test_api_key_required(self):
        with pytest.raises(ValueError):
            TranscriptionClient("")


@pytest.mark.unit
class TestImageGenerationClient:

    def test_returns_url(self, serve):
        received = {}

        async def generations(request):
            received.update(await request.json())
            return web.json_response({"data": [{"url": "https://cdn.example.test/img.png"}]})

        async def scenario():
            async with serve([web.post("/v1/images/generations", generations)]) as root:
                client = ImageGenerationClient(API_KEY, quality="hd", style="natural",
                                               base_url=f"{root}/v1", timeout_seconds=5)
                return await client.generate("Draw a fox")

        url = asyncio.run(scenario())

        assert url == "https://cdn.example.test/img.png"
        assert received == {
            "model": "dall-e-3",
            "prompt": "Draw a fox",
            "n": 1,
            "size": "1024x1024",
            "quality": "hd",
            "style": "natural",
        }

    def test_policy_rejection(self, serve):
        async def generations(request):
            return web.json_response(
                {"error": {"code": "content_policy_violation",
                           "message": "Your request was rejected by the safety system."}},
                status=400)

        async def scenario():
            async with serve([web.post("/v1/images/generations", generations)]) as root:
                client = ImageGenerationClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=5)
                await client.generate("something forbidden")

        with pytest.raises(PolicyRejectionError):
            asyncio.run(scenario())

    def test_other_errors_are_generic(self, serve):
        async def generations(request):
            return web.json_response({"error": {"code": "rate_limit_exceeded"}}, status=429)

        async def scenario():
            async with serve([web.post("/v1/images/generations", generations)]) as root:
                client = ImageGenerationClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=5)
                await client.generate("a fox")

        with pytest.raises(RemoteServiceError) as excinfo:
            asyncio.run(scenario())
        assert not isinstance(excinfo.value, PolicyRejectionError)

    def test_missing_url(self, serve):
        async def generations(request):
            return web.json_response({"data": []})

        async def scenario():
            async with serve([web.post("/v1/images/generations", generations)]) as root:
                client = ImageGenerationClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=5)
                await client.generate("a fox")

        with pytest.raises(RemoteServiceError, match="no URL"):
            asyncio.run(scenario())

    def test_malformed_json(self, serve):
        async def generations(request):
            return web.Response(text="{not json", content_type="application/json")

        async def scenario():
            async with serve([web.post("/v1/images/generations", generations)]) as root:
                client = ImageGenerationClient(API_KEY, base_url=f"{root}/v1", timeout_seconds=5)
                await client.generate("a fox")

        with pytest.raises(RemoteServiceError, match="unreadable body"):
            asyncio.run(scenario())


@pytest.mark.unit
class TestImageFetcher:

    def test_download(self, serve, temp_data_dir):
        body = b"\x89PNG\r\n\x1a\n" + b"\x00" * 100_000
        dest = Path(temp_data_dir) / "session.png"

        async def image(request):
            return web.Response(body=body, content_type="image/png")

        async def scenario():
            async with serve([web.get("/img.png", image)]) as root:
                return await ImageFetcher(timeout_seconds=5).download(f"{root}/img.png", dest)

        assert asyncio.run(scenario()) == dest
        assert dest.read_bytes() == body
        assert not Path(str(dest) + ".part").exists()

    def test_non_success_status(self, serve, temp_data_dir):
        dest = Path(temp_data_dir) / "session.png"

        async def image(request):
            return web.Response(status=404, text="expired")

        async def scenario():
            async with serve([web.get("/img.png", image)]) as root:
                await ImageFetcher(timeout_seconds=5).download(f"{root}/img.png", dest)

        with pytest.raises(DownloadError, match="404"):
            asyncio.run(scenario())
        assert not dest.exists()
        assert not Path(str(dest) + ".part").exists()

    def test_timeout_leaves_no_file(self, serve, temp_data_dir):
        dest = Path(temp_data_dir) / "session.png"

        async def image(request):
            response = web.StreamResponse()
            await response.prepare(request)
            await response.write(b"\x89PNG")
            await asyncio.sleep(0.5)
            return response

        async def scenario():
            async with serve([web.get("/img.png", image)]) as root:
                await ImageFetcher(timeout_seconds=0.2).download(f"{root}/img.png", dest)

        with pytest.raises(DownloadError):
            asyncio.run(scenario())
        assert not dest.exists()
        assert not Path(str(dest) + ".part").exists()
