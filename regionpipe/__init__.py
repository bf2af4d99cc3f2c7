"""
Regional Leaderboards

Assigns a region key to people, venues, activity records and secondary
content, then rebuilds per-region, per-venue leaderboards.

Modules:
    - shared: configuration and geo primitives (geohash, distance)
    - regions: region catalog, location field mapping, resolver
    - store: record store interface, Firestore and in-memory backends
    - migration: per-entity phases and the batch migrator
    - leaderboards: leaderboard builder and phase
    - alerting: run-summary alerts
"""

__version__ = "0.1.0"
