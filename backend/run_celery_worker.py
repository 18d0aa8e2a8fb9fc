#!/usr/bin/env python3
# backend/run_celery_worker.py
"""
Development Celery worker runner for the scheduling queue.
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
    queues = os.getenv("CELERY_QUEUES") or "scheduling"
    print("🚀 Starting Celery worker (ENVIRONMENT=" + os.environ["ENVIRONMENT"] + ")…")
    print(f"📦 Consuming queues: {queues}")

    cmd = [
        sys.executable,
        "-m",
        "celery",
        "-A",
        "tutorsched.tasks.celery_app",
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "--max-tasks-per-child=100",
        "-Q",
        queues,
    ]

    subprocess.run(cmd)
