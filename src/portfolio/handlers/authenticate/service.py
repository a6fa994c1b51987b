"""Business logic for admin login."""

from portfolio.core.config import PortfolioSettings
from portfolio.core.container import get_settings
from portfolio.core.utils.auth import issue_token


class AuthService:
    def __init__(self, settings: PortfolioSettings | None = None) -> None:
        self.settings = settings or get_settings()

    def authenticate(self, password: str) -> str:
        return issue_token(password, self.settings)
