"""Playback-driven transcription with two-speaker diarization."""
