"""Lead-qualification workflow.

Scores call transcripts with Claude, creates the next-stage records and
sends the invitations that move a prospect along the pipeline.
"""

from api.workflow.handoffs import router as handoffs_router
from api.workflow.routes import router as analysis_router
from api.workflow.scoring import AnalysisError, TranscriptScorer, get_scorer

__all__ = [
    "AnalysisError",
    "TranscriptScorer",
    "analysis_router",
    "get_scorer",
    "handoffs_router",
]
