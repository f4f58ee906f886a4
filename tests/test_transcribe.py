"""
Tests for POST /api/transcribe.
"""

from fastapi.testclient import TestClient

from procureflow.core.config import Settings
from procureflow.main import create_app


AUDIO = ("note.webm", b"\x1a\x45\xdf\xa3fake-audio", "audio/webm")


class TestTranscribe:

    def test_transcribes_audio(self, client, fake_openai):
        response = client.post("/api/transcribe", files={"audio": AUDIO})
        assert response.status_code == 200
        assert response.json() == {
            "text": "add two cables",
            "segments": [{"text": "add two cables", "startSecond": 0.0, "endSecond": 1.5}],
            "language": "english",
            "durationInSeconds": 1.5,
            "warnings": [],
        }
        call = fake_openai.audio.transcriptions.calls[0]
        assert call["model"] == "whisper-1"
        assert call["response_format"] == "verbose_json"
        assert call["file"] == AUDIO

    def test_passes_language_and_granularities(self, client, fake_openai):
        client.post(
            "/api/transcribe",
            files={"audio": AUDIO},
            data={"language": "en", "timestampGranularities": "segment, word"},
        )
        call = fake_openai.audio.transcriptions.calls[0]
        assert call["language"] == "en"
        assert call["timestamp_granularities"] == ["segment", "word"]

    def test_no_file(self, client):
        response = client.post("/api/transcribe", data={"language": "en"})
        assert response.status_code == 400
        assert response.json() == {"error": "no_file", "message": "No audio file provided"}

    def test_unsupported_mime(self, client):
        response = client.post("/api/transcribe", files={"audio": ("a.png", b"png", "image/png")})
        assert response.status_code == 400
        assert response.json()["error"] == "unsupported_mime"

    def test_file_too_large(self, tmp_path, fake_openai):
        from procureflow.services.transcription import Transcriber

        settings = Settings(
            _env_file=None,
            openai_api_key="test-key",
            chats_dir=str(tmp_path),
            max_upload_bytes=1024 * 1024,
        )
        app = create_app(settings=settings, transcriber=Transcriber(client=fake_openai))
        with TestClient(app) as client:
            big = ("big.wav", b"\0" * (1024 * 1024 + 1), "audio/wav")
            response = client.post("/api/transcribe", files={"audio": big})
        assert response.status_code == 400
        assert response.json() == {"error": "file_too_large", "message": "Audio exceeds 1MB limit"}
        assert fake_openai.audio.transcriptions.calls == []

    def test_vendor_failure(self, client, fake_openai):
        fake_openai.audio.transcriptions.error = RuntimeError("whisper down")
        response = client.post("/api/transcribe", files={"audio": AUDIO})
        assert response.status_code == 500
        assert response.json() == {"error": "transcription_failed"}

    def test_missing_api_key(self, tmp_path):
        settings = Settings(_env_file=None, openai_api_key=None, chats_dir=str(tmp_path))
        with TestClient(create_app(settings=settings)) as client:
            response = client.post("/api/transcribe", files={"audio": AUDIO})
        assert response.status_code == 500
