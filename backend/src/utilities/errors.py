class SerializationError(ValueError):
    """A published value could not be rendered as an event frame."""


class ProducerError(RuntimeError):
    """The producer task stopped because a tick raised.

    There is no useful degraded mode without a producer, so this is fatal
    for the server process.
    """


class SubscriptionClosed(Exception):
    """Raised by Subscription.get() once the subscription has ended."""
