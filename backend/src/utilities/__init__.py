from utilities.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DROP_NEWEST,
    DROP_OLDEST,
    EMPTY_FRAME,
    EVENT_STREAM_MEDIA_TYPE,
    HEARTBEAT_FRAME,
    HEARTBEAT_INTERVAL,
    SCORE_PROBABILITY,
    SUBSCRIBER_QUEUE_SIZE,
    TICK_INTERVAL,
)
from utilities.config import Settings
from utilities.errors import ProducerError, SerializationError, SubscriptionClosed
from utilities.utility_functions import make_frame, make_heartbeat, serialize_value
