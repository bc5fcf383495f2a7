"""
sensors — Device observers feeding the emergency trigger.

Sub-modules:
    location_observer  — periodic best-effort position fixes
    shake_observer     — motion-sample thresholding → "shake detected"
    audio_recorder     — microphone capture into an AudioClip

Each observer takes its device source as a constructor argument and has
an explicit start/stop lifecycle, so tests drive them with fakes.
"""
