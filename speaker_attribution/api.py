"""HTTP surface for speaker attribution.

Callers post every transcribed file of a session in one request; the
service never reads audio or storage itself.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException

from speaker_attribution.config import Config, get_config, create_use_case
from speaker_attribution.diagnostics import ChannelSource
from speaker_attribution.models import AnalysisReport, AttributionRequestDTO, AttributionResult
from speaker_attribution.use_cases.attribute_speakers import AttributionRequest

logger = logging.getLogger(__name__)


def _to_request(dto: AttributionRequestDTO) -> AttributionRequest:
    return AttributionRequest(
        channels=[ChannelSource(file_name=c.file_name, transcription=c.transcription) for c in dto.channels],
        mic_assignments=dict(dto.mic_assignments),
    )


def create_app(cfg: Optional[Config] = None) -> FastAPI:
    cfg = cfg or get_config()
    app = FastAPI(title="Speaker Attribution", version="1.0.0")
    app.state.use_case = create_use_case(cfg)

    @app.get("/health")
    def health():
        return {"status": "ok", "config": cfg.as_dict()}

    @app.post("/v1/attribution/diagnose", response_model=AnalysisReport)
    def diagnose(body: AttributionRequestDTO):
        if not body.channels:
            raise HTTPException(status_code=400, detail="No channels provided")
        return app.state.use_case.diagnose(_to_request(body))

    @app.post("/v1/attribution/run", response_model=AttributionResult)
    def run(body: AttributionRequestDTO):
        if not body.channels:
            raise HTTPException(status_code=400, detail="No channels provided")
        logger.info(
            f"Attribution request: {len(body.channels)} channels, "
            f"{len(body.mic_assignments)} mic assignments"
        )
        return app.state.use_case.execute(_to_request(body))

    return app
