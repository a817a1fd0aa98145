"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidConfigurationError(DomainException):
    """Engine configuration is inconsistent and must be rejected before use"""

    pass


class AdvisorServiceError(DomainException):
    """Remote advisory service returned an error or is unavailable"""

    pass


class AdvisorResponseParseError(AdvisorServiceError):
    """Advisory reply did not contain a usable decision"""

    pass
