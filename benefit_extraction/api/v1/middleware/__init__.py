from benefit_extraction.api.v1.middleware.auth import SharedSecretMiddleware

__all__ = ["SharedSecretMiddleware"]
