"""
Default configuration values for cloudglue-mcp.

Note: API key, base URL and working directory are resolved by
config/loader.py which supports CLI arguments, environment variables,
.env files, project config and user config.
"""

DEFAULT_BASE_URL = "https://api.cloudglue.dev/v1"

# Seconds between job status fetches
POLL_INTERVAL = 5.0

# HTTP timeout for a single API request (seconds)
REQUEST_TIMEOUT = 60.0

# Concurrency windows for the batch runner
YOUTUBE_BATCH_SIZE = 5
URL_BATCH_SIZE = 10
FANOUT_BATCH_SIZE = 10

# Filter-fetch over-fetch: extra items pulled so date filters can fill a page,
# capped by the largest page the API will return
OVERFETCH_MARGIN = 50
MAX_UPSTREAM_PAGE = 100

# Upper bound used when listing "all" videos of a collection
COLLECTION_VIDEO_SCAN_LIMIT = 100

# Describe output is paged in fixed windows of video time
DESCRIBE_PAGE_SECONDS = 300

# Segment-level entities per page
ENTITIES_PER_PAGE = 25

# Chat model used for collection chat and moment search
CHAT_MODEL = "nimbus-001"
CHAT_MAX_TOKENS = 8000

# YouTube RSS feeds expose at most this many recent videos
YOUTUBE_RSS_MAX_VIDEOS = 15

# Maximum URLs accepted by the multi-URL tools
MAX_BATCH_URLS = 50

# Local upload directory listing cap on file-not-found
DIRECTORY_LISTING_CAP = 50
