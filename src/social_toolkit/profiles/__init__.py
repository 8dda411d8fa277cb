from social_toolkit.profiles.service import ProfileService

__all__ = ["ProfileService"]
