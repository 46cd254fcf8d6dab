# ------------ Config ------------
SUBSCRIBER_QUEUE_SIZE = 16    # bounded per-subscriber queue
TICK_INTERVAL = 0.5           # seconds between producer ticks
HEARTBEAT_INTERVAL = 15       # seconds of idle before a keep-alive comment frame
SCORE_PROBABILITY = 0.3       # chance per tick that a team scores
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001

# overflow policies for a full subscriber queue
DROP_OLDEST = "drop_oldest"
DROP_NEWEST = "drop_newest"

# ------------ Wire ------------
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"
EMPTY_FRAME = "data: {}\n\n"
HEARTBEAT_FRAME = ": ping\n\n"
# --------------------------------
