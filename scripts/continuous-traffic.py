#!/usr/bin/env python3
"""
Continuous traffic generator for the store service.
Runs generate-traffic.py until stopped with Ctrl+C.
"""
import os
import signal
import subprocess
import sys

process = None

def stop(sig, frame):
    print('\n\nStopping traffic generation...')
    if process:
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
    sys.exit(0)

signal.signal(signal.SIGINT, stop)
signal.signal(signal.SIGTERM, stop)

if __name__ == "__main__":
    clients = os.getenv("TRAFFIC_CLIENTS", "20")
    url = os.getenv("STORE_API_URL", "http://localhost:8000")
    print(f"Starting continuous traffic against {url} with {clients} clients")
    print("Press Ctrl+C to stop\n")

    script_dir = os.path.dirname(os.path.abspath(__file__))
    process = subprocess.Popen(
        [
            sys.executable,
            os.path.join(script_dir, "generate-traffic.py"),
            "--clients", clients,
            "--duration", "999999",
            "--url", url,
        ],
        cwd=script_dir,
        stdout=sys.stdout,
        stderr=sys.stderr
    )
    process.wait()
