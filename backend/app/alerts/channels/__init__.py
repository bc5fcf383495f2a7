"""
channels — Per-channel delivery backends.

Each channel module exposes a ``send``/``activate`` style coroutine or
function returning a DeliveryAttempt. Channels never raise for delivery
failures; the attempt's status carries the outcome.
"""
