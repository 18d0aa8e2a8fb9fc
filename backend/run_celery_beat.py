#!/usr/bin/env python3
# backend/run_celery_beat.py
"""
Development Celery beat runner for the DST checks and generation sweep.
For local development only.
"""
import os
from pathlib import Path
import subprocess
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("ENVIRONMENT", "development")

if __name__ == "__main__":
    print("🚀 Starting Celery beat (ENVIRONMENT=" + os.environ["ENVIRONMENT"] + ")…")
    print("⏰ Beat will schedule daily-dst-check, hourly-dst-check and generation-sweep")

    cmd = [sys.executable, "-m", "celery", "-A", "tutorsched.tasks.celery_app", "beat", "--loglevel=info"]

    subprocess.run(cmd)
