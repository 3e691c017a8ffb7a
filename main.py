# main.py
import time
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import config
from utils.logging_utils import logger
from models.exercise_catalog import get_exercise, list_exercises
from models.pose import Pose
from models.schemas import (
    ExerciseHistory, ExerciseInfo, FeedbackSections, FrameResult, PoseFrameIn,
    ProgressReport, SessionSummary, StartSessionRequest, StopSessionRequest,
)
from models.workout_counter import WorkoutCounter
from services.analytics_service import ExerciseAnalytics
from services.feedback_service import AIFeedbackService, create_openai_client

logger.info(f"Starting in: {config.mode_description}")

app = FastAPI(title=f"Pose Form Coach Backend - {config.mode_description}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# Shared services and the single active workout session
analytics = ExerciseAnalytics()
feedback_service = AIFeedbackService(client=create_openai_client())
counter = WorkoutCounter(analytics=analytics, feedback_service=feedback_service)


def _resolve_key(exercise: str) -> str:
    try:
        return get_exercise(exercise).key
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown exercise: {exercise}")


@app.on_event("shutdown")
async def shutdown_event():
    """Let any queued feedback batch finish before exit"""
    feedback_service.shutdown(wait=True)


@app.get("/health")
async def health_check():
    """Simple health check endpoint for service monitoring"""
    return {"status": "healthy", "timestamp": time.time(), "session": counter.get_status()}


@app.get("/exercises", response_model=List[ExerciseInfo])
async def exercises():
    """Catalog of supported exercises with their metadata"""
    return [
        ExerciseInfo(
            key=e.key,
            name=e.display_name,
            description=e.description,
            difficulty=e.difficulty,
            primaryView=e.primary_view,
            targetMuscles=list(e.target_muscles),
            repGoal=e.rep_goal,
            keyMetrics=list(e.key_metrics),
            formGuidance=list(e.form_guidance),
        )
        for e in list_exercises()
    ]


@app.post("/session/start", response_model=FrameResult)
async def start_session(request: StartSessionRequest):
    """Start tracking an exercise, closing any session already in progress"""
    key = _resolve_key(request.exercise)
    return counter.start_session(key, request.timestamp)


@app.post("/analyze_pose", response_model=FrameResult)
async def analyze_pose(frame: PoseFrameIn):
    """
    Core endpoint: one frame of pose landmarks in, rep count, rep state,
    metric severities and feedback out.
    """
    if not counter.is_active:
        raise HTTPException(status_code=409, detail="No active session")

    pose = Pose.from_dicts([lm.model_dump() if lm is not None else None for lm in frame.landmarks])
    result = counter.update(pose, frame.timestamp)
    logger.debug(f"Frame {result.timestamp}: rep {result.repCount:g}, state {result.repState}")
    return result


@app.post("/session/stop", response_model=SessionSummary)
async def stop_session(request: StopSessionRequest = None):
    """Close the active session and return its summary"""
    if not counter.is_active:
        raise HTTPException(status_code=409, detail="No active session")
    return counter.stop_session(request.timestamp if request else None)


@app.post("/session/reset", response_model=FrameResult)
async def reset_session():
    """Restart the active exercise from zero without recording it"""
    if not counter.is_active:
        raise HTTPException(status_code=409, detail="No active session")
    return counter.reset()


@app.get("/history/{exercise}", response_model=ExerciseHistory)
async def history(exercise: str):
    return analytics.get_history(_resolve_key(exercise))


@app.get("/progress/{exercise}", response_model=ProgressReport)
async def progress(exercise: str):
    return analytics.generate_progress_report(_resolve_key(exercise))


@app.get("/feedback", response_model=FeedbackSections)
async def latest_feedback():
    """Most recent AI coaching feedback, produced in the background"""
    if feedback_service.latest is None:
        raise HTTPException(status_code=404, detail="No feedback generated yet")
    return feedback_service.latest
