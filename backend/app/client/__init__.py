"""
client — On-device emergency runtime.

Sub-modules:
    api_client     — httpx client for the safety API
    effects        — siren + flashlight with an active guard
    sos_trigger    — click / 3-second hold / shake → one trigger
    alert_session  — sending → sent | error, then call the primary contact
"""
