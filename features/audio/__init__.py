"""Audio processing handlers."""

from features.audio.audio_segment_handler import AudioSegmentHandler

__all__ = [
    "AudioSegmentHandler",
]
