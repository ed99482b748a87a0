from icescraper.auth.google_auth import ServiceAccountAuth

__all__ = ['ServiceAccountAuth']
