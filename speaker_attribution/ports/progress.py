"""ProgressPort: where the attribution pipeline reports finished stages."""

from abc import ABC, abstractmethod
from typing import Optional

from speaker_attribution.domain.models import PipelineStage


class ProgressPort(ABC):
    @abstractmethod
    def report(self, job_id: str, stage: PipelineStage, detail: Optional[str] = None) -> None:
        """Called once per completed stage; stage.progress gives the finished fraction."""
