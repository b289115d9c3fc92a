"""
amzwp exceptions
"""

from typing import List, Optional


class AmzwpError(Exception):
    """Base exception for amzwp"""
    pass


class NetworkError(AmzwpError):
    """Transport or HTTP failure"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RelayExhaustionError(NetworkError):
    """Every relay target failed"""

    def __init__(self, message: str, attempted: int, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.attempted = attempted
        self.errors = list(errors or [])


class AcquisitionError(AmzwpError):
    """Every content-resolution strategy failed"""
    pass


class ValidationError(AmzwpError):
    """Structurally invalid or empty input"""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class EnrichmentError(AmzwpError):
    """Enrichment oracle call failed (never fatal)"""
    pass


class CredentialsError(AmzwpError):
    """Operation requires WordPress credentials"""
    pass


class WordPressAPIError(AmzwpError):
    """WordPress REST call rejected or unreachable"""

    def __init__(self, message: str, endpoint: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code
