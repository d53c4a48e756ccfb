"""
Configuration settings for the canvas flow engine.

Every value can be overridden from the environment.
"""

import os

# Directory holding the persisted flow collection
FLOWS_DIR = os.environ.get("FLOW_DATA_DIR", "output/flows")

# Storage key of the flow collection (file stem of the JSON document)
STORAGE_KEY = os.environ.get("FLOW_STORAGE_KEY", "tess-excalidraw-flows")

# Pause in seconds after each replayed step
# Paces visible effects on the canvas, not needed for correctness
STEP_DELAY = float(os.environ.get("FLOW_STEP_DELAY", "0.5"))

# Replay defaults when the request does not say otherwise
DEFAULT_COUNT = 1
DEFAULT_SPACING = 200

# Queries shorter than this never fall through to substring matching
MIN_CONTAINS_QUERY = 3

# Optional YAML file with extra tool parameter schemas
TOOL_SCHEMAS_FILE = os.environ.get("FLOW_TOOL_SCHEMAS") or None

# Canvas page driven by the Playwright tool surface
CANVAS_URL = os.environ.get("FLOW_CANVAS_URL", "http://localhost:3000")

# Browser headless mode for the canvas surface
HEADLESS = os.environ.get("FLOW_HEADLESS", "1").lower() not in ("0", "false", "no")

# HTTP API port
API_PORT = int(os.environ.get("FLOW_API_PORT", "8090"))

# Open the canvas surface when the HTTP API starts
API_CANVAS = os.environ.get("FLOW_API_CANVAS", "0").lower() in ("1", "true", "yes")
