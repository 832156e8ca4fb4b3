import os
import signal
import subprocess
import sys
import tempfile
import time

import httpx

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"

TRIP = {"origin": "Guatemala", "destination": "Pimocha", "class": "Premium", "cost": 500}


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def start_server(env):
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "inventory.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def run_verification():
    db_path = os.path.join(tempfile.mkdtemp(), "trips.db")
    env = {**os.environ, "DATABASE_URL": f"sqlite+aiosqlite:///{db_path}", "DB_ECHO": "True"}

    # 1. Start Server (First Run)
    print(f"\n--- [Step 1] Starting Server (Initial, {db_path}) ---")
    proc = start_server(env)

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Save a trip through the entry form
        print("\n--- [Step 2] Saving Trip (Persistence Test) ---")
        resp = httpx.patch(f"{BASE_URL}{API_PREFIX}/trip-entry", json=TRIP)
        if not resp.json().get("is_entry_valid"):
            raise Exception(f"Entry not valid: {resp.text}")

        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/trip-entry/save")
        if resp.status_code == 201:
            print("✅ Trip Saved Successfully")
            print(resp.json())
            trip_id = resp.json()["id"]
        else:
            print(f"❌ Save Failed: {resp.status_code} {resp.text}")
            raise Exception("Save failed")

    finally:
        print("\n--- [Step 3] Stopping Server ---")
        stop_server(proc)

    time.sleep(2)  # Wait for port release

    # 3. Restart Server
    print("\n--- [Step 4] Restarting Server (Verification) ---")
    proc2 = start_server(env)

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        # 4. Read it back
        print("\n--- [Step 5] Fetching Trip (Post-Restart) ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/trips/{trip_id}")
        if resp.status_code == 200 and resp.json() == {"id": trip_id, **TRIP}:
            print("✅ Trip Persisted!")
            print(resp.json())
        else:
            print(f"❌ Fetch Failed (Persistence Issue?): {resp.status_code} {resp.text}")
            raise Exception("Trip missing after restart")

    finally:
        print("\n--- [Step 6] Stopping Server ---")
        stop_server(proc2)


if __name__ == "__main__":
    run_verification()
