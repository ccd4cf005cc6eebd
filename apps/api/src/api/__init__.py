"""Growth Manager Pro API.

A multi-tenant sales CRM that moves prospects from lead capture through
pre-qualification, podcast, discovery and strategy calls to a closed deal.
"""

from api.main import app

__all__ = ["app"]
