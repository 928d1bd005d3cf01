"""Content-studio endpoints.

Each handler performs exactly one backend call per attempt and lets
the credential rotator pick the API key, so rotation stays invisible to the
browser: it either gets a result or a single error.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field, model_validator
from structlog import get_logger

from studio_proxy.api.dependencies import BackendDep, RotatorDep, SettingsDep
from studio_proxy.backend.gemini import extract_inline_data, extract_text
from studio_proxy.exceptions import EmptyBackendResponseError


logger = get_logger(__name__)

router = APIRouter(tags=["studio"])

DEFAULT_VOICE = "Kore"
DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_RESOLUTION = "720p"


class ChatRequest(BaseModel):
    """Chat turn with the prior conversation."""

    history: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Prior turns in Gemini content format ({role, parts})",
    )
    message: str = Field(min_length=1, description="New user message")


class ChatResponse(BaseModel):
    text: str


class TranscribeRequest(BaseModel):
    """Audio clip to transcribe."""

    model_config = ConfigDict(populate_by_name=True)

    audio_base64: str = Field(
        min_length=1,
        serialization_alias="audioBase64",
        validation_alias="audioBase64",
        description="Base64-encoded audio bytes",
    )
    audio_mime_type: str = Field(
        serialization_alias="audioMimeType",
        validation_alias="audioMimeType",
        description="MIME type of the audio, e.g. audio/webm",
    )
    prompt: str = Field(
        default="Transcribe this audio.",
        description="Instruction sent alongside the audio",
    )


class TranscribeResponse(BaseModel):
    transcription: str


class GenerateAudioRequest(BaseModel):
    """Text to synthesize as speech."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(min_length=1, description="Text to speak")
    selected_voice: str = Field(
        default=DEFAULT_VOICE,
        serialization_alias="selectedVoice",
        validation_alias="selectedVoice",
        description="Prebuilt voice name",
    )


class GenerateAudioResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base64_audio: str = Field(
        serialization_alias="base64Audio",
        validation_alias="base64Audio",
    )


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    rotator: RotatorDep,
    backend: BackendDep,
    settings: SettingsDep,
) -> ChatResponse:
    """Send a chat message with its history and return the model's reply."""
    contents = [
        *body.history,
        {"role": "user", "parts": [{"text": body.message}]},
    ]

    async def call(api_key: str) -> str:
        response = await backend.generate_content(
            api_key, settings.backend.chat_model, contents
        )
        text = extract_text(response)
        if not text:
            raise EmptyBackendResponseError("text")
        return text

    text = await rotator.execute(
        call, timeout=settings.rotation.request_timeout_seconds
    )
    return ChatResponse(text=text)


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe(
    body: TranscribeRequest,
    rotator: RotatorDep,
    backend: BackendDep,
    settings: SettingsDep,
) -> TranscribeResponse:
    """Transcribe an audio clip."""
    contents = [
        {
            "role": "user",
            "parts": [
                {"text": body.prompt},
                {
                    "inlineData": {
                        "data": body.audio_base64,
                        "mimeType": body.audio_mime_type,
                    }
                },
            ],
        }
    ]

    async def call(api_key: str) -> str:
        response = await backend.generate_content(
            api_key, settings.backend.transcription_model, contents
        )
        transcription = extract_text(response)
        if not transcription:
            raise EmptyBackendResponseError("transcription")
        return transcription

    transcription = await rotator.execute(
        call, timeout=settings.rotation.request_timeout_seconds
    )
    return TranscribeResponse(transcription=transcription)


@router.post(
    "/generate-audio",
    response_model=GenerateAudioResponse,
    response_model_by_alias=True,
)
async def generate_audio(
    body: GenerateAudioRequest,
    rotator: RotatorDep,
    backend: BackendDep,
    settings: SettingsDep,
) -> GenerateAudioResponse:
    """Synthesize speech with a prebuilt voice; returns base64 PCM audio."""
    contents = [{"parts": [{"text": body.prompt}]}]
    generation_config = {
        "responseModalities": ["AUDIO"],
        "speechConfig": {
            "voiceConfig": {
                "prebuiltVoiceConfig": {"voiceName": body.selected_voice},
            },
        },
    }

    async def call(api_key: str) -> str:
        response = await backend.generate_content(
            api_key,
            settings.backend.tts_model,
            contents,
            generation_config=generation_config,
        )
        audio = extract_inline_data(response)
        if audio is None:
            raise EmptyBackendResponseError("audio")
        return audio

    audio = await rotator.execute(
        call, timeout=settings.rotation.request_timeout_seconds
    )
    logger.debug("audio_generated", voice=body.selected_voice, size=len(audio))
    return GenerateAudioResponse(base64_audio=audio)


class EditImageRequest(BaseModel):
    """Image to edit with a text instruction."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(min_length=1, description="Edit instruction")
    image_base64: str = Field(
        min_length=1,
        serialization_alias="imageBase64",
        validation_alias="imageBase64",
        description="Base64-encoded source image",
    )
    image_mime_type: str = Field(
        serialization_alias="imageMimeType",
        validation_alias="imageMimeType",
        description="MIME type of the source image, e.g. image/png",
    )


class EditImageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(
        serialization_alias="imageBase64",
        validation_alias="imageBase64",
    )


class GenerateVideoRequest(BaseModel):
    """Video generation request: a prompt, a start image, or both."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(default="", description="Scene description")
    image_base64: str | None = Field(
        default=None,
        serialization_alias="imageBase64",
        validation_alias="imageBase64",
        description="Optional base64-encoded start frame",
    )
    image_mime_type: str | None = Field(
        default=None,
        serialization_alias="imageMimeType",
        validation_alias="imageMimeType",
    )
    aspect_ratio: str = Field(
        default=DEFAULT_ASPECT_RATIO,
        serialization_alias="aspectRatio",
        validation_alias="aspectRatio",
    )
    resolution: str = Field(default=DEFAULT_RESOLUTION)

    @model_validator(mode="after")
    def require_prompt_or_image(self) -> "GenerateVideoRequest":
        if not self.prompt.strip() and not self.image_base64:
            raise ValueError("A prompt or a start image is required")
        if self.image_base64 and not self.image_mime_type:
            raise ValueError("imageMimeType is required with imageBase64")
        return self


class GenerateVideoResponse(BaseModel):
    operation: dict[str, Any] = Field(
        description="Long-running operation resource to poll for the video"
    )


@router.post(
    "/edit-image",
    response_model=EditImageResponse,
    response_model_by_alias=True,
)
async def edit_image(
    body: EditImageRequest,
    rotator: RotatorDep,
    backend: BackendDep,
    settings: SettingsDep,
) -> EditImageResponse:
    """Edit an image following a text instruction; returns base64 image data."""
    contents = [
        {
            "parts": [
                {
                    "inlineData": {
                        "data": body.image_base64,
                        "mimeType": body.image_mime_type,
                    }
                },
                {"text": body.prompt},
            ]
        }
    ]

    async def call(api_key: str) -> str:
        response = await backend.generate_content(
            api_key,
            settings.backend.image_model,
            contents,
            generation_config={"responseModalities": ["IMAGE"]},
        )
        image = extract_inline_data(response)
        if image is None:
            raise EmptyBackendResponseError("image")
        return image

    image = await rotator.execute(
        call, timeout=settings.rotation.request_timeout_seconds
    )
    return EditImageResponse(image_base64=image)


@router.post("/generate-video", response_model=GenerateVideoResponse)
async def generate_video(
    body: GenerateVideoRequest,
    rotator: RotatorDep,
    backend: BackendDep,
    settings: SettingsDep,
) -> GenerateVideoResponse:
    """Start a video generation and return the operation without polling it."""
    instance: dict[str, Any] = {}
    if body.prompt.strip():
        instance["prompt"] = body.prompt
    if body.image_base64:
        instance["image"] = {
            "bytesBase64Encoded": body.image_base64,
            "mimeType": body.image_mime_type,
        }
    parameters = {
        "aspectRatio": body.aspect_ratio,
        "resolution": body.resolution,
    }

    async def call(api_key: str) -> dict[str, Any]:
        operation = await backend.predict_long_running(
            api_key, settings.backend.video_model, [instance], parameters
        )
        if not operation.get("name"):
            raise EmptyBackendResponseError("operation")
        return operation

    operation = await rotator.execute(
        call, timeout=settings.rotation.request_timeout_seconds
    )
    logger.info("video_generation_started", operation=operation["name"])
    return GenerateVideoResponse(operation=operation)
