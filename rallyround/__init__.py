"""
RallyRound access core.

Role-based access rules and request route guarding for the RallyRound
community platform (organizations, teams, members, events, competitions
and fundraisers).
"""

__version__ = "0.1.0"
