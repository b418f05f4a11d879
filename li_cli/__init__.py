"""
LinkedIn CLI - Three-layer architecture for the LinkedIn Voyager API.

Layers:
- core: Request encoding, HTTP client, entity graph and resolvers
- sdk: High-level LinkedInClient with nice ergonomics
- cli: Opinionated command-line interface
"""

from li_cli.sdk import LinkedInClient

__version__ = "0.1.0"
__all__ = ["LinkedInClient"]
