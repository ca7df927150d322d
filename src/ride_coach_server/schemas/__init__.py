"""Pydantic schemas and plain records."""

from ride_coach_server.schemas.analysis import (
    AnalysisStatus,
    DecouplingLevel,
    ExecutionScore,
    NextWorkout,
    RideAnalysis,
    RideMetrics,
    RideType,
    SubEffort,
    TargetRange,
    VolumeSummary,
    WeeklyLoad,
    WorkoutRecommendation,
    ZoneBasis,
    ZoneTimes,
)
from ride_coach_server.schemas.ingest import (
    ActivityIngestRequest,
    ClearResult,
    IngestResult,
    ProfileResponse,
    ProfileUpdate,
)
from ride_coach_server.schemas.records import (
    ActivityRecord,
    AthleteProfileRecord,
    PowerCurveRecord,
    PowerStream,
    RideCategory,
    RideStreams,
    StreamChannel,
)
from ride_coach_server.schemas.training import (
    FtpModel,
    PowerCurvePoint,
    ThresholdReport,
    TrainingParamsSnapshot,
    ftp_models,
    merge_training_params,
)

__all__ = [
    "ActivityIngestRequest",
    "ActivityRecord",
    "AthleteProfileRecord",
    "ClearResult",
    "AnalysisStatus",
    "DecouplingLevel",
    "ExecutionScore",
    "FtpModel",
    "IngestResult",
    "NextWorkout",
    "PowerCurvePoint",
    "PowerCurveRecord",
    "PowerStream",
    "ProfileResponse",
    "ProfileUpdate",
    "RideAnalysis",
    "RideCategory",
    "RideMetrics",
    "RideStreams",
    "RideType",
    "StreamChannel",
    "SubEffort",
    "TargetRange",
    "ThresholdReport",
    "TrainingParamsSnapshot",
    "VolumeSummary",
    "WeeklyLoad",
    "WorkoutRecommendation",
    "ZoneBasis",
    "ZoneTimes",
    "ftp_models",
    "merge_training_params",
]
