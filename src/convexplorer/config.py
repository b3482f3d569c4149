"""Central configuration for paths and constants."""

import os
from pathlib import Path

# Source export: override with CONVEXPLORER_FILE env var
SOURCE_FILE = Path(os.environ.get("CONVEXPLORER_FILE", "conversations.json"))

# Pagination
PAGE_SIZE = int(os.environ.get("CONVEXPLORER_PAGE_SIZE", "100"))

# Size estimate for the "size" sort: base + bytes per message
SIZE_BASE_BYTES = 500
SIZE_PER_MESSAGE_BYTES = 2000

# Message length buckets, in trimmed characters of derived text
SHORT_MESSAGE_MAX = 50
MEDIUM_MESSAGE_MAX = 500

# Labels used when a record lacks the field
INVALID_DATE_BUCKET = "invalid-date"
UNKNOWN_LABEL = "unknown"

# Containers nested deeper than this are not searched
DEEP_SEARCH_MAX_DEPTH = 64

# Analysis report
REPORT_FILE = Path("conversation-analysis-report.json")
REPORT_SAMPLE_SIZE = 10

# Display
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PREVIEW_MESSAGES = 3
PREVIEW_CHARS = 100
MESSAGE_TEXT_LIMIT = 2000
PART_TEXT_LIMIT = 500
TITLE_CHARS = 40
