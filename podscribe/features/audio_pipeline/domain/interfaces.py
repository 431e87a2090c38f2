from abc import ABC, abstractmethod
from pathlib import Path
from .models import PipelineResult


class IAudioPipeline(ABC):
    """
    Contract for turning arbitrary audio into ordered, normalized chunks.
    """

    @abstractmethod
    def process(self, input_path: Path) -> PipelineResult:
        """
        Transcodes and splits the input audio.

        Args:
            input_path: Any container/codec the transcoder understands.

        Returns:
            PipelineResult whose temp_directory is owned by the caller.

        Raises:
            PipelineError: If transcoding fails. No partial chunks are returned
                           and the temp directory is already gone.
        """
        pass
