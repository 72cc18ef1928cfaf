# src/metric_widget_cli/config.py
"""
Central configuration for the metric widget CLI.
Environment variables, CLI defaults, and constants live here.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ---------------------------------------------------------------------------
# AWS access
# Credentials themselves come from the boto3 default chain.
# ---------------------------------------------------------------------------
ROLE_NAME: str | None = os.getenv("METRIC_WIDGET_ROLE_NAME") or None
SESSION_NAME: str = os.getenv("METRIC_WIDGET_SESSION_NAME", "metric-widget-cli")
DEFAULT_REGION: str = os.getenv("METRIC_WIDGET_DEFAULT_REGION", "us-west-2")

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
OUTPUT_DIR: str = os.getenv("METRIC_WIDGET_OUTPUT_DIR", ".")
IMAGE_FORMAT: str = "png"
ALARMS_FILENAME: str = "describe-alarms.json"

# ---------------------------------------------------------------------------
# `images` defaults
# ---------------------------------------------------------------------------
DEFAULT_PERIOD: int = 3600
DEFAULT_START: str = "4320H"
DEFAULT_END: str = "0H"
DEFAULT_TITLE: str = "metric"

# Timestamp layout accepted by GetMetricWidgetImage for "start"/"end".
TIMESTAMP_FORMAT: str = "%Y-%m-%dT%H:%M:%SZ"
