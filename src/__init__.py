"""
Negosyo Digital media service - file addressing for content submissions.

This package contains the complete application:
- core: Framework-agnostic storage addressing and SigV4 signing
- infrastructure: R2 and legacy blob store integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
