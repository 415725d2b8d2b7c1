"""
Storage layer - sites, leads and subscriptions
"""

from roofsite.storage.site_db import SiteDatabase

__all__ = ["SiteDatabase"]
