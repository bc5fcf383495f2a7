"""
safety — Emergency contacts, alerts and app settings.

Sub-modules:
    models      — entity dataclasses and their JSON wire format
    storage     — in-memory store (contacts, alerts, settings singleton)
    validation  — E.164 phone-number checks
"""
