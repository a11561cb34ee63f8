"""
Entry point for the drill CLI from a source checkout.

Run with:
    python main.py --help
    python main.py learn french.json -m sm2
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from src.cli.main import main  # noqa: E402

if __name__ == "__main__":
    main()
