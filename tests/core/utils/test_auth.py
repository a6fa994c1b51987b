import pytest

from portfolio.core.config import PortfolioSettings
from portfolio.core.models.errors import UnauthorizedError
from portfolio.core.utils.auth import bearer_token, derive_token, issue_token, require_admin

SETTINGS = PortfolioSettings.from_env({"STORAGE_VARIANT": "memory", "ADMIN_PASSWORD": "s3cret"})
UNCONFIGURED = PortfolioSettings.from_env({"STORAGE_VARIANT": "memory"})


def event_with(authorization: str | None) -> dict:
    headers = {} if authorization is None else {"Authorization": authorization}
    return {"headers": headers}


class TestIssueToken:
    def test_correct_password(self) -> None:
        token = issue_token("s3cret", SETTINGS)

        assert token == derive_token("s3cret")
        assert len(token) == 64
        assert "s3cret" not in token

    def test_wrong_password(self) -> None:
        with pytest.raises(UnauthorizedError):
            issue_token("guess", SETTINGS)

    def test_unconfigured_password_rejects_everything(self) -> None:
        with pytest.raises(UnauthorizedError) as exc:
            issue_token("", UNCONFIGURED)

        assert exc.value.message == "Admin access is not configured"

    def test_token_changes_with_password(self) -> None:
        assert derive_token("one") != derive_token("two")
        assert derive_token("one") == derive_token("one")


class TestRequireAdmin:
    def test_valid_token(self) -> None:
        require_admin(event_with(f"Bearer {derive_token('s3cret')}"), SETTINGS)

    def test_scheme_is_case_insensitive(self) -> None:
        event = {"headers": {"authorization": f"bearer {derive_token('s3cret')}"}}

        require_admin(event, SETTINGS)

    @pytest.mark.parametrize(
        "authorization",
        [None, "", "Bearer ", "Basic czNjcmV0", "Bearer s3cret", f"Bearer {derive_token('other')}"],
    )
    def test_rejected(self, authorization: str | None) -> None:
        with pytest.raises(UnauthorizedError):
            require_admin(event_with(authorization), SETTINGS)

    def test_unconfigured_password(self) -> None:
        with pytest.raises(UnauthorizedError):
            require_admin(event_with(f"Bearer {derive_token('')}"), UNCONFIGURED)

    def test_missing_headers(self) -> None:
        assert bearer_token(None) is None
        with pytest.raises(UnauthorizedError):
            require_admin({}, SETTINGS)
