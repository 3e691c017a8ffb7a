import argparse
import os
from typing import Optional

import dotenv

# Pull OPENAI_API_KEY and friends from a local .env if present
dotenv.load_dotenv()


class Config:
    """
    Central configuration manager for the Pose Form Coach application.
    Holds the tunable constants used by smoothing, severity classification,
    rep counting, session history and the AI feedback service.
    """

    def __init__(self):
        # Application mode settings
        self.debug_mode: str = "debug"
        self.host: str = "0.0.0.0"
        self.port: int = 8000

        # Pose input
        self.min_visibility: float = 0.5  # Landmarks below this visibility are treated as missing
        self.use_3d_angles: bool = False  # Use depth axis when the pose carries one

        # Temporal smoothing
        self.smoothing_window: int = 20  # Prior raw samples kept per metric
        self.smoothing_weight: float = 0.2  # Weight of the newest raw sample
        self.smoothing_trim_fraction: float = 0.1  # Fraction trimmed from each end of the history
        self.smoothing_min_trim_samples: int = 10  # History length before trimming kicks in

        # Severity classification
        self.warning_margin: float = 10.0  # Added to ideal bounds to get the warning band
        self.hysteresis_buffer: float = 3.0  # Extra distance required to change tier

        # Rep counting
        self.max_state_duration: float = 3.0  # Seconds in one state before stall recovery

        # Session history
        self.history_max_sessions: int = 10  # Past sessions kept per exercise

        # AI feedback
        self.feedback_interval: float = 10.0  # Seconds of frame time between feedback batches
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
        self.openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

        # Human-readable descriptions for each debug mode
        self.mode_descriptions = {
            "debug": "Debug Mode (verbose logging)",
            "non_debug": "Non-Debug Mode (minimal logging)"
        }

    def setup_from_args(self, argv=None):
        """
        Parse command line arguments and configure application settings.
        Only the runner calls this so the app module stays importable in tests.
        """
        parser = argparse.ArgumentParser(description="Pose Form Coach Backend")
        parser.add_argument(
            "--mode",
            choices=["debug", "non_debug"],
            default="debug",
            help="Debug mode setting"
        )
        parser.add_argument("--host", default=self.host, help="Interface to bind")
        parser.add_argument("--port", type=int, default=self.port, help="Port to listen on")
        parser.add_argument(
            "--feedback-interval",
            type=float,
            default=self.feedback_interval,
            help="Seconds between AI feedback batches"
        )
        parser.add_argument(
            "--use-3d",
            action="store_true",
            default=self.use_3d_angles,
            help="Measure joint angles in 3D when landmarks carry depth"
        )
        args = parser.parse_args(argv)

        self.debug_mode = args.mode
        self.host = args.host
        self.port = args.port
        self.feedback_interval = args.feedback_interval
        self.use_3d_angles = args.use_3d

    @property
    def mode_description(self) -> str:
        """Get human-readable description of current mode"""
        return self.mode_descriptions[self.debug_mode]

    @property
    def supported_exercises(self):
        """Exercise keys known to the metric catalog"""
        from models.exercise_catalog import EXERCISE_CATALOG
        return list(EXERCISE_CATALOG)


# Global configuration instance - import this in other modules
config = Config()
