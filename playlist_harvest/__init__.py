"""
Playlist harvester.

Collects the playlists of a curator account from the catalog API, together
with their follower counts, tracks and the audio features of those tracks,
and stores them in four PostgreSQL relations.
"""

__version__ = "1.0.0"
