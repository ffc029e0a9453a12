from pathlib import Path
import logging
import os
import sys

from dotenv import load_dotenv

# Ensure the src directory is on sys.path when running as a script
_SRC_DIR = Path(__file__).resolve().parents[1]
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

load_dotenv()

from tavern.bootstrap import create_game_service  # noqa: E402
from tavern.presentation.game_loop import run_game_loop  # noqa: E402


def _print_help_surface() -> None:
    print("\nHelp:")
    print("- Type actions in plain language; /help lists the commands.")
    print("- No narrator keys? Set TAVERN_NARRATOR=scripted to play offline.")
    print("- Startup issues: verify TAVERN_DATABASE_URL or unset it to use in-memory mode.")


def main() -> None:
    logging.basicConfig(
        level=os.getenv("TAVERN_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        game_service = create_game_service()
        run_game_loop(game_service, user_id=os.getenv("TAVERN_USER_ID", "local-player"))
    except (KeyboardInterrupt, EOFError):
        print("\nSession ended.")
    except Exception as exc:
        print("An unexpected error occurred. The game closed safely.")
        print(f"Reason: {exc}")
        _print_help_surface()


if __name__ == "__main__":
    main()
