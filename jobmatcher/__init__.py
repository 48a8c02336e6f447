from .errors import (
    InvalidInput,
    MatcherError,
    NotFound,
    PersistencePartialFailure,
    PipelineTimeout,
    UpstreamUnavailable,
)
from .models import Job, JobMatch, MatchRunResult, MatchScores, Resume
from .pipeline import MatchPipeline, get_user_matches, run_match_pipeline
from .scoring import compute_match_scores, compute_overall_score

__version__ = "0.1.0"
