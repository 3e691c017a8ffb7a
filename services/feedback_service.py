# feedback_service.py
"""
Natural-language coaching feedback, kept off the per-frame path.
Frame batches are reduced to a plain snapshot dict, turned into a prompt for an
OpenAI chat model, and the reply is split into four labelled sections. Any
client failure is replaced by deterministic rule-based text.
"""

import re
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import numpy as np
from openai import OpenAI

from config import config
from models.schemas import FeedbackSections, FrameMetrics
from utils.logging_utils import logger
from utils.motivation import get_motivation_text

SECTION_KEYS = ("FORM_ASSESSMENT", "IMPROVEMENT_TIP", "PROGRESS_FEEDBACK", "BREATHING_REMINDER")
SECTION_HEADER = re.compile(r"^([A-Z_]+):$")
GOOD_FORM_THRESHOLD = 0.75

DEFAULT_SECTIONS = {
    "FORM_ASSESSMENT": "Your form looks generally good. Focus on maintaining proper posture.",
    "IMPROVEMENT_TIP": "Keep your movements controlled and deliberate throughout the exercise.",
    "PROGRESS_FEEDBACK": "You're making good progress. Keep up the great work!",
    "BREATHING_REMINDER": "Remember to breathe - exhale during exertion and inhale during the relaxation phase.",
}

SYSTEM_PROMPT = ("You are an expert fitness coach giving short, specific, encouraging feedback "
                 "from real-time pose measurements.")

# Exercise key -> coaching context used in the prompt and the rule-based fallback
EXERCISE_CONTEXT = {
    "bicep_curl": {
        "context": "Bicep curls target the biceps brachii with secondary activation of the forearms. "
                   "This isolation exercise is fundamental for arm strength and definition.",
        "criteria": ["Elbows should remain fixed at sides throughout the movement",
                     "Wrists should remain straight, not flexed or extended",
                     "Full range of motion from full extension to full contraction",
                     "Controlled tempo on both concentric and eccentric phases",
                     "Shoulders should remain level and stable"],
        "errors": ["Using momentum/swinging the weights",
                   "Moving elbows forward during lifting phase",
                   "Incomplete range of motion",
                   "Excessive shoulder involvement",
                   "Uneven lifting (one arm working harder)"],
        "breathing": "Exhale while curling the weight up, inhale while lowering it. "
                     "Keep your core engaged throughout.",
    },
    "shoulder_press": {
        "context": "Shoulder press primarily targets the deltoids with secondary activation of the triceps "
                   "and upper chest. This compound movement is essential for shoulder strength and stability.",
        "criteria": ["Maintain neutral spine alignment throughout the movement",
                     "Symmetrical arm movement on both sides",
                     "Elbows should be at approximately 90 degrees in the starting position",
                     "Wrists should be stacked over elbows",
                     "Full extension at the top without locking elbows"],
        "errors": ["Excessive arching of lower back",
                   "Uneven pressing (one arm higher than the other)",
                   "Flaring elbows too far forward",
                   "Incomplete range of motion",
                   "Shrugging shoulders during the press"],
        "breathing": "Exhale as you press the weights up, inhale as you lower them. "
                     "Brace your core to protect the lower back.",
    },
    "lateral_raise": {
        "context": "Lateral raises isolate the lateral deltoids, crucial for shoulder width and definition. "
                   "This exercise requires strict form to be effective and safe.",
        "criteria": ["Slight bend in the elbows maintained throughout",
                     "Controlled movement without momentum",
                     "Hands should rise to shoulder level, not above",
                     "Thumbs slightly higher than pinkies",
                     "Shoulders should stay down, away from the ears"],
        "errors": ["Using too much weight and compromising form",
                   "Swinging/using momentum",
                   "Shrugging shoulders during the lift",
                   "Raising arms above shoulder level",
                   "Internal rotation of shoulders"],
        "breathing": "Exhale as you raise the weights, inhale as you lower them.",
    },
    "bent_over_row": {
        "context": "Bent-over rows target the latissimus dorsi, rhomboids, and rear deltoids. "
                   "This compound pull exercise is essential for back strength and posture.",
        "criteria": ["Maintain a flat back throughout",
                     "Hinge at hips with slight knee bend",
                     "Pull elbows close to body, not flared out",
                     "Squeeze shoulder blades together at the top",
                     "Controlled lowering phase"],
        "errors": ["Rounding the back during the exercise",
                   "Using momentum/jerking the weights",
                   "Insufficient range of motion",
                   "Lifting torso during the pull",
                   "Flaring elbows too wide"],
        "breathing": "Exhale during the pull, inhale while lowering. Keep your core braced.",
    },
}

DEFAULT_CONTEXT = {
    "context": "This resistance exercise requires proper form for effectiveness and safety. "
               "Focus on controlled movements and proper alignment.",
    "criteria": ["Maintain proper joint alignment",
                 "Use controlled movements (avoid momentum)",
                 "Complete full range of motion",
                 "Keep core engaged for stability",
                 "Maintain symmetry between left and right sides"],
    "errors": ["Using momentum instead of muscle control",
               "Incomplete range of motion",
               "Poor posture/alignment",
               "Uneven effort between sides",
               "Holding breath during exertion"],
    "breathing": "Exhale during the exertion phase and inhale during the return phase. "
                 "Never hold your breath during resistance training.",
}


def build_feedback_snapshot(exercise, frames: List[FrameMetrics], rep_count: float) -> Dict[str, Any]:
    """
    Reduce a batch of frame metrics to the only input the feedback generator
    sees: exercise metadata, counters, overall form quality, recent issues
    and the latest measurements.
    """
    qualities = [f.formQuality for f in frames if f.formQuality is not None]
    quality_score = float(np.mean(qualities)) if qualities else None

    issues: List[str] = []
    for frame in frames:
        for issue in frame.formIssues:
            if issue not in issues:
                issues.append(issue)

    latest = frames[-1] if frames else None
    return {
        "exerciseKey": exercise.key,
        "exerciseName": exercise.display_name,
        "repCount": rep_count,
        "repGoal": exercise.rep_goal,
        "targetMuscles": list(exercise.target_muscles),
        "formQualityScore": quality_score,
        "formQuality": "good" if quality_score is not None and quality_score >= GOOD_FORM_THRESHOLD
        else "needs_improvement",
        "formIssues": issues[:5],
        "jointAngles": dict(latest.jointAngles) if latest else {},
        "posture": dict(latest.posture) if latest else {},
        "symmetry": dict(latest.symmetry) if latest else {},
        "movement": dict(latest.movement) if latest else {},
        "frameCount": len(frames),
    }


def _bullets(items) -> str:
    return "\n".join(f"- {item}" for item in items)


def _measurements(title: str, values: Dict[str, float], fmt: str = "{:.2f}") -> str:
    if not values:
        return ""
    lines = "\n".join(f"- {name}: {fmt.format(value)}" for name, value in values.items())
    return f"{title}:\n{lines}\n"


def create_feedback_prompt(snapshot: Optional[Dict[str, Any]]) -> str:
    if not snapshot:
        return "Please provide exercise feedback based on available data."

    info = EXERCISE_CONTEXT.get(snapshot.get("exerciseKey"), DEFAULT_CONTEXT)
    name = snapshot["exerciseName"]
    rep_count = snapshot.get("repCount", 0)
    rep_goal = snapshot.get("repGoal")
    goal_text = f" of {rep_goal} target" if rep_goal else ""
    issues = snapshot.get("formIssues") or []
    issues_text = (f"- Form issues detected: {', '.join(issues)}" if issues
                   else "- No specific form issues detected")
    quality_text = "Good" if snapshot.get("formQuality") == "good" else "Needs improvement"

    measurements = "".join([
        _measurements("JOINT ANGLES", snapshot.get("jointAngles", {}), "{:.0f} degrees"),
        _measurements("POSTURE", snapshot.get("posture", {})),
        _measurements("SYMMETRY", snapshot.get("symmetry", {})),
        _measurements("MOVEMENT", snapshot.get("movement", {}), "{:.4f}"),
    ])

    return f"""You are an expert fitness coach analyzing exercise data from a real-time workout. \
I need detailed, personalized feedback for a user performing {name}.

EXERCISE CONTEXT:
{info['context']}

PROPER FORM CRITERIA:
{_bullets(info['criteria'])}

COMMON ERRORS:
{_bullets(info['errors'])}

USER'S CURRENT METRICS:
- Exercise: {name}
- Current rep count: {rep_count:g}{goal_text}
- Target muscles: {', '.join(snapshot.get('targetMuscles', []))}
- Form quality assessment: {quality_text}
{issues_text}

DETAILED MEASUREMENTS:
{measurements}
PROPER BREATHING TECHNIQUE:
{info['breathing']}

INSTRUCTIONS:
Provide a structured response with exactly these sections, each header alone on its own line:

FORM_ASSESSMENT:
2-3 sentences on what the user does well and what needs improvement, referencing the measurements.

IMPROVEMENT_TIP:
ONE specific, actionable tip that would most improve their form.

PROGRESS_FEEDBACK:
Encouraging feedback about their progress ({rep_count:g}{goal_text} reps).

BREATHING_REMINDER:
A brief, exercise-specific breathing reminder.

Each section should be 1-3 sentences. Keep the whole response under 150 words."""


def parse_feedback_sections(text: str) -> Dict[str, str]:
    """
    Split a model reply into the four labelled sections.
    Headers are lines of the form NAME: on their own. If no header is found
    and the reply has at least four paragraphs, paragraphs are used in order.
    Sections that are still missing get the default text.
    """
    sections: Dict[str, str] = {}
    current = None
    content: List[str] = []

    for line in (text or "").splitlines():
        match = SECTION_HEADER.match(line.strip())
        if match and match.group(1) in SECTION_KEYS:
            if current and content:
                sections[current] = " ".join(content).strip()
            current = match.group(1)
            content = []
        elif current and line.strip():
            content.append(line.strip())

    if current and content:
        sections[current] = " ".join(content).strip()

    if not sections:
        paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text or "") if p.strip()]
        if len(paragraphs) >= len(SECTION_KEYS):
            for key, paragraph in zip(SECTION_KEYS, paragraphs):
                sections[key] = re.sub(rf"^{key}:?\s*", "", paragraph, flags=re.IGNORECASE)

    return {key: sections.get(key) or DEFAULT_SECTIONS[key] for key in SECTION_KEYS}


def fallback_feedback(snapshot: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Rule-based sections used whenever the language model is unavailable"""
    sections = dict(DEFAULT_SECTIONS)
    if not snapshot:
        return sections

    info = EXERCISE_CONTEXT.get(snapshot.get("exerciseKey"), DEFAULT_CONTEXT)
    issues = snapshot.get("formIssues") or []
    rep_count = snapshot.get("repCount", 0) or 0
    rep_goal = snapshot.get("repGoal") or 0

    if issues:
        sections["FORM_ASSESSMENT"] = f"A few things to watch: {'; '.join(issues[:2])}"
        sections["IMPROVEMENT_TIP"] = issues[0]
    elif snapshot.get("formQuality") == "good":
        sections["FORM_ASSESSMENT"] = "Your form looks solid across the measured joints. Keep it up."

    if rep_count > 0:
        remaining = rep_goal - rep_count if rep_goal else 0
        progress = f"{rep_count:g} reps done"
        if remaining > 0:
            progress += f", {remaining:g} to go"
        sections["PROGRESS_FEEDBACK"] = f"{progress}. {get_motivation_text(rep_count, rep_goal)}"

    sections["BREATHING_REMINDER"] = info["breathing"]
    return sections


def create_openai_client(api_key: str = None) -> Optional[OpenAI]:
    """OpenAI client when a key is configured, otherwise None (rule-based feedback only)"""
    api_key = api_key or config.openai_api_key
    if not api_key:
        logger.info("No OpenAI API key configured, using rule-based feedback")
        return None
    return OpenAI(api_key=api_key)


class AIFeedbackService:
    """
    Generates feedback sections on a single background worker so the frame
    path never waits on the network. The newest result is kept in `latest`.
    """

    def __init__(self, client=None, model: str = None):
        self.client = client
        self.model = model or config.openai_model
        self.failures = 0
        self._latest: Optional[FeedbackSections] = None
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ai-feedback")

    @property
    def latest(self) -> Optional[FeedbackSections]:
        with self._lock:
            return self._latest

    def generate_feedback(self, snapshot: Dict[str, Any]) -> FeedbackSections:
        if self.client is not None:
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": create_feedback_prompt(snapshot)},
                    ],
                    max_tokens=300,
                    temperature=0.7,
                )
                text = response.choices[0].message.content or ""
                return FeedbackSections(**parse_feedback_sections(text), source="ai", generatedAt=time.time())
            except Exception as e:
                self.failures += 1
                logger.warning(f"AI feedback error: {e}, falling back to rule-based feedback")

        return FeedbackSections(**fallback_feedback(snapshot), source="fallback", generatedAt=time.time())

    def submit(self, snapshot: Dict[str, Any]) -> Future:
        """Queue a snapshot for background generation and return its future"""
        future = self._executor.submit(self._run, snapshot)
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: Future):
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Feedback generation failed: {error!r}")

    def _run(self, snapshot: Dict[str, Any]) -> FeedbackSections:
        sections = self.generate_feedback(snapshot)
        with self._lock:
            self._latest = sections
        return sections

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
