"""Lasers & Feelings character creator — dev launcher. Starts the local editor API."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "127.0.0.1")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Lasers & Feelings character creator")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Replace saved characters with demo characters")
    parser.add_argument("--reload", action="store_true",
                        help="Restart the server when source files change")
    args = parser.parse_args()

    data_dir = args.data_dir or Path(os.getenv("DATA_DIR", str(ROOT / "data")))
    if args.demo:
        from backend.demo import create_demo_data
        create_demo_data(data_dir)

    # The app reads DATA_DIR at import time, also in reload workers
    os.environ["DATA_DIR"] = str(data_dir.resolve())

    print(f"Starting editor API on http://{HOST}:{BACKEND_PORT} ...")
    uvicorn.run("backend.app:app", host=HOST, port=int(BACKEND_PORT), reload=args.reload)


if __name__ == "__main__":
    main()
