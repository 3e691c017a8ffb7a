import uvicorn
from config import config
from utils.logging_utils import set_level_from_config

if __name__ == "__main__":
    # Parse flags before the app module is imported so its title and logging reflect them
    config.setup_from_args()
    set_level_from_config()

    from main import app

    # Display startup information with available command-line options
    print("\n" + "="*60)
    print("Pose Form Coach Backend")
    print("="*60)
    print(f"Mode: {config.mode_description}")
    print("\nAvailable modes:")
    print("  python run.py --mode debug      # Verbose logging")
    print("  python run.py --mode non_debug  # Minimal logging only")
    print("  python run.py --port 9000 --feedback-interval 15")
    print("  python run.py --use-3d             # 3D joint angles when landmarks carry depth")
    print("="*60 + "\n")

    uvicorn.run(app, host=config.host, port=config.port)
