from enum import Enum


class Strategy(str, Enum):
    """Supported authentication strategies (also used as provider names)."""

    PASSWORD = "password"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    GITHUB = "github"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
