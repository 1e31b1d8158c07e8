"""
Carbon-Neutral Café Self-Assessment (ecocafe)

A checklist survey for cafés: a branching question flow with
back-navigation, answer correction from the summary, progress tracking
and grading, plus the read model behind the results map.

LAYERS:
    model / catalog / analyzer   - static question catalog and its checks
    state / engine               - one survey session's state machine
    location                     - subject coordinates (map selection, GPS)
    persistence / reports        - injected store and the records sent to it
    overview                     - stored results as map markers

Storage, map rendering, place search and device geolocation are external
collaborators, passed in by the caller.
"""

__version__ = "0.1.0"
