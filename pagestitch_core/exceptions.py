"""
pagestitch exceptions
"""


class PageStitchError(Exception):
    """Base exception for pagestitch"""
    pass


class ConfigurationError(PageStitchError):
    """Invalid capture configuration or URL (raised before the browser is touched)"""
    pass


class NavigationError(PageStitchError):
    """Page failed to load within the timeout, or a network failure occurred"""
    pass


class AuthenticationError(PageStitchError):
    """Proxy credentials were rejected"""
    pass


class CaptureError(PageStitchError):
    """A scroll or viewport snapshot failed mid-pipeline"""
    pass


class StitchError(PageStitchError):
    """Canvas allocation, compositing or encoding failed"""
    pass
