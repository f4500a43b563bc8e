"""Synthesized new-order ring.

Each ring trills between two tones like an old desk phone; four rings are
played back to back at a fixed spacing. The result is a 16-bit mono WAV.
"""
import io
import math
import wave
from array import array

SAMPLE_RATE = 8000
RING_TONES = (800.0, 1000.0)
TRILL_STEP = 0.05
RING_LENGTH = 0.4
RING_SPACING = 1.0
RING_COUNT = 4
VOLUME = 0.3
FADE = 0.01


def _ring_samples(sample_rate: int) -> array:
    samples = array("h")
    total = int(RING_LENGTH * sample_rate)
    step = int(TRILL_STEP * sample_rate)
    fade = max(1, int(FADE * sample_rate))
    phase = 0.0
    for n in range(total):
        freq = RING_TONES[(n // step) % len(RING_TONES)]
        # phase accumulates so tone switches do not click
        phase += 2 * math.pi * freq / sample_rate
        envelope = min(1.0, n / fade, (total - n) / fade)
        samples.append(int(32767 * VOLUME * envelope * math.sin(phase)))
    return samples


def synthesize_ring(sample_rate: int = SAMPLE_RATE) -> bytes:
    ring = _ring_samples(sample_rate)
    gap = array("h", [0]) * (int(RING_SPACING * sample_rate) - len(ring))

    samples = array("h")
    for i in range(RING_COUNT):
        samples.extend(ring)
        if i < RING_COUNT - 1:
            samples.extend(gap)

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(samples.tobytes())
    return buffer.getvalue()
