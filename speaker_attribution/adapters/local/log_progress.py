"""LogProgressAdapter: writes finished pipeline stages to the log."""

import logging
from typing import Optional

from speaker_attribution.domain.models import PipelineStage
from speaker_attribution.ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def report(self, job_id: str, stage: PipelineStage, detail: Optional[str] = None) -> None:
        suffix = f" - {detail}" if detail else ""
        logger.info(f"[{job_id}] attribution {stage.value} ({stage.progress:.0%}){suffix}")
