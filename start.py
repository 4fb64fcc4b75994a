"""Server startup - runs the channelchat API with uvicorn."""
import os
import sys
import traceback

port = int(os.environ.get("PORT", "8000"))
host = os.environ.get("HOST", "0.0.0.0")

try:
    from src.api.server import app
except Exception as e:
    print(f"[start.py] Could not import the API app: {type(e).__name__}: {e}", flush=True)
    traceback.print_exc()
    sys.exit(1)

import uvicorn

print(f"[start.py] Starting channelchat on {host}:{port}", flush=True)
uvicorn.run(app, host=host, port=port, log_level="info")
