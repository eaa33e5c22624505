"""
Request handlers.

    from staticserver.handlers import StaticFileHandler

    static = StaticFileHandler("/srv/www")
    response = static.handle(request)
"""

from .static import StaticFileHandler

__all__ = ["StaticFileHandler"]
