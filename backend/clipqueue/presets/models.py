"""
Video preset model.

A preset is an immutable encoder recipe. Jobs take a copy of the preset at
submission, so editing or reloading presets never alters a running job.

All models use Pydantic for strict validation.
Unknown fields are rejected.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Presets that get the MP4 "moov atom first" flag for progressive playback
FASTSTART_PRESETS = frozenset({"Web"})

# x264 speed/compression tradeoff used for every preset
ENCODER_SPEED = "medium"


class VideoPreset(BaseModel):
    """
    Encoder settings for one quality level.

    Identity is the name: names are unique within a loaded preset set.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    description: str = ""
    video_codec: str
    audio_codec: str
    bitrate: Optional[str] = None  # e.g. "2M"
    crf: Optional[int] = Field(default=None, ge=0, le=51)  # Constant rate factor
    scale: Optional[str] = None  # ffmpeg scale expression, e.g. "720:-1"

    @field_validator("name", "video_codec", "audio_codec")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v

    def to_ffmpeg_args(self) -> List[str]:
        """
        Encoder arguments for this preset.

        Input/output arguments are added by the encoder, not here.
        """
        args = ["-c:v", self.video_codec, "-c:a", self.audio_codec]

        if self.crf is not None:
            args += ["-crf", str(self.crf)]
        if self.bitrate:
            args += ["-b:v", self.bitrate]
        if self.scale:
            args += ["-vf", f"scale={self.scale}"]
        if self.name in FASTSTART_PRESETS:
            args += ["-movflags", "+faststart"]

        args += ["-preset", ENCODER_SPEED]
        return args


BUILTIN_PRESETS: List[VideoPreset] = [
    VideoPreset(
        name="High",
        description="Best quality, larger file size. Ideal for archiving or further editing.",
        video_codec="libx264",
        audio_codec="aac",
        crf=18,
    ),
    VideoPreset(
        name="Balanced",
        description="Good balance between quality and file size. Perfect for most use cases.",
        video_codec="libx264",
        audio_codec="aac",
        crf=23,
    ),
    VideoPreset(
        name="Web",
        description="Optimized for web streaming. Fast start enabled, reasonable quality.",
        video_codec="libx264",
        audio_codec="aac",
        bitrate="2M",
        crf=28,
    ),
    VideoPreset(
        name="Mobile",
        description="Smaller file size for mobile devices. Reduced resolution and bitrate.",
        video_codec="libx264",
        audio_codec="aac",
        bitrate="1M",
        crf=30,
        scale="720:-1",
    ),
]
