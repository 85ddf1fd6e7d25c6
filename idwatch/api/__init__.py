"""
idwatch REST API
================

FastAPI application, authentication and routes.

Author: idwatch Team
Version: 1.0.0
"""
