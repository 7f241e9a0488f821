"""Audio input port (interface)"""

from abc import ABC, abstractmethod
import numpy as np


class IAudioInput(ABC):
    """
    Source of capture blocks for the VAD loop.

    Blocks are mono float32 arrays in [-1, 1]; the orchestrator timestamps
    them itself, so implementations only deliver samples.
    """

    @abstractmethod
    def start_stream(self):
        """Open the capture stream and return a handle for read_chunk()"""
        pass

    @abstractmethod
    async def read_chunk(self, stream) -> np.ndarray:
        """Wait for the next block from an open stream"""
        pass

    @abstractmethod
    def stop_stream(self):
        """Release the capture stream (safe to call twice)"""
        pass
