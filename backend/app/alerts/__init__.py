"""
alerts — Emergency alert triggering and notification delivery.

Sub-modules:
    channels/        — Per-channel delivery backends (SMS, call, siren, flashlight)
    notifier         — Swappable delivery capability (simulated / HTTP gateway)
    trigger_service  — Primary-contact lookup, alert record, SMS dispatch
    models           — Delivery data structures shared across the system
"""
