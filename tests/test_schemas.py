"""Tests for envelope parsing and wire frame models."""

import base64

import pytest

from neuphonic_sdk.schemas.agents import AgentFrame, StopAudioResponse, UserTranscript
from neuphonic_sdk.schemas.common import Err, Ok, parse_envelope
from neuphonic_sdk.schemas.tts import TtsChunk, TtsConfig, TtsFrame
from neuphonic_sdk.schemas.voices import VoiceCloned


class TestEnvelope:
    def test_success_envelope(self) -> None:
        result = parse_envelope({"data": {"message": "ok", "voice_id": "v1"}}, VoiceCloned)

        assert isinstance(result, Ok)
        assert result.data.voice_id == "v1"

    def test_error_envelope_with_message(self) -> None:
        result = parse_envelope({"detail": "This voice name already exists."}, VoiceCloned)

        assert isinstance(result, Err)
        assert result.matches(r"voice name already exists")
        assert not result.matches(r"does not exist")

    def test_error_envelope_with_validation_details(self) -> None:
        detail = [{"loc": ["query", "voice_name"], "msg": "field required"}]

        result = parse_envelope({"detail": detail}, VoiceCloned)

        assert isinstance(result, Err)
        assert result.detail == detail
        assert not result.matches("field required")

    @pytest.mark.parametrize("payload", [None, "oops", {"data": {"message": "x"}}, {}])
    def test_malformed_payloads(self, payload) -> None:
        assert parse_envelope(payload, VoiceCloned) is None


class TestTtsModels:
    def test_config_query_drops_unset_values(self) -> None:
        config = TtsConfig(voice_id="v1", speed=1.1)

        assert config.to_query() == {"voice_id": "v1", "speed": 1.1}
        assert config.language == "en"

    def test_chunk_from_frame_decodes_audio(self) -> None:
        raw = {
            "data": {
                "audio": base64.b64encode(b"\x00\x01").decode(),
                "text": "hi",
                "sampling_rate": 22050,
                "stop": True,
            }
        }

        chunk = TtsChunk.from_frame(TtsFrame.model_validate(raw).data)

        assert chunk == TtsChunk(audio=b"\x00\x01", text="hi", sampling_rate=22050, stop=True)

    def test_null_audio_is_empty(self) -> None:
        frame = TtsFrame.model_validate({"data": {"audio": None, "stop": True}})

        assert TtsChunk.from_frame(frame.data).audio == b""


def test_agent_frames_discriminate_on_type() -> None:
    transcript = AgentFrame.model_validate({"data": {"type": "user_transcript", "text": "hey"}})
    stop = AgentFrame.model_validate({"data": {"type": "stop_audio_response"}})

    assert isinstance(transcript.data, UserTranscript)
    assert isinstance(stop.data, StopAudioResponse)
