"""
idwatch Core Package
====================

Identity exposure monitoring engine.

This package sits between an untrusted evidence source and the user:

    - vault/: Monitored identifiers per profile
    - integrations/: Evidence source clients
    - findings/: Match validation, persistence and lifecycle
    - scoring/: Consolidated per-profile risk scoring
    - notifications/: Alert construction and delivery
    - scanning/: Scan orchestration
    - api/: FastAPI REST API layer

Author: idwatch Team
Version: 1.0.0
"""

__version__ = "1.0.0"
