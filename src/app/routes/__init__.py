"""
FastAPI Routes.

API 라우트 (apps, admin) + 게시된 앱 서빙 (sites)
"""

from . import admin, apps, sites

__all__ = ["admin", "apps", "sites"]
