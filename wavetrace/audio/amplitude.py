"""Amplitude decoding of raw 16-bit PCM chunks."""

import base64
import binascii
import logging

import numpy as np

from ..exceptions import MalformedChunk

logger = logging.getLogger(__name__)

# Full scale of a signed 16-bit sample
INT16_FULL_SCALE = 32768.0


class AmplitudeDecoder:
    """Turns one PCM chunk into one averaged, normalized amplitude."""

    def decode(self, chunk: bytes) -> float:
        """Decode a little-endian int16 chunk into its mean normalized magnitude.

        Args:
            chunk: Raw PCM bytes, two bytes per sample

        Returns:
            Mean of abs(sample) / 32768 over all samples, in [0.0, 1.0]

        Raises:
            MalformedChunk: If the chunk is empty or has an odd length
        """
        if not chunk:
            raise MalformedChunk("Empty audio chunk")
        if len(chunk) % 2:
            raise MalformedChunk(f"Odd-length audio chunk: {len(chunk)} bytes")

        samples = np.frombuffer(chunk, dtype="<i2").astype(np.float64)
        amplitude = float(np.mean(np.abs(samples)) / INT16_FULL_SCALE)
        return amplitude

    def decode_base64(self, data: str) -> float:
        """Decode a base64-encoded PCM chunk, as delivered by some capture devices."""
        try:
            chunk = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedChunk(f"Invalid base64 audio chunk: {e}") from e
        return self.decode(chunk)
