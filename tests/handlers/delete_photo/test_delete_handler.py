from unittest.mock import patch

from portfolio.core.infrastructure.memory.in_memory_key_value_store import InMemoryKeyValueStore
from portfolio.core.models.errors import StorageError
from portfolio.handlers.delete_photo.handler import handler


class TestDeleteHandler:
    def test_delete_success(
        self, lambda_context, api_event, admin_headers, body_of, repository, stored_photo
    ) -> None:
        event = api_event(
            "DELETE", path_params={"photo_id": stored_photo.id}, headers=admin_headers
        )

        response = handler(event, lambda_context)

        assert response["statusCode"] == 200
        body = body_of(response)
        assert body["message"] == "Photo deleted successfully"
        assert body["photo_id"] == stored_photo.id
        assert repository.list() == []

    def test_requires_token(self, lambda_context, api_event, repository, stored_photo) -> None:
        event = api_event(
            "DELETE",
            path_params={"photo_id": stored_photo.id},
            headers={"Authorization": "Bearer wrong"},
        )

        response = handler(event, lambda_context)

        assert response["statusCode"] == 401
        assert [record.id for record in repository.list()] == [stored_photo.id]

    def test_unknown_id(self, lambda_context, api_event, admin_headers, body_of) -> None:
        event = api_event("DELETE", path_params={"photo_id": "nope"}, headers=admin_headers)

        response = handler(event, lambda_context)

        assert response["statusCode"] == 404
        assert body_of(response)["error"] == "PHOTO_NOT_FOUND"

    def test_metadata_failure_is_partial(
        self, lambda_context, api_event, admin_headers, body_of, stored_photo
    ) -> None:
        event = api_event(
            "DELETE", path_params={"photo_id": stored_photo.id}, headers=admin_headers
        )

        with patch.object(
            InMemoryKeyValueStore,
            "set",
            side_effect=StorageError(message="disk full"),
        ):
            response = handler(event, lambda_context)

        assert response["statusCode"] == 202
        body = body_of(response)
        assert body["error"] == "DELETED_STILL_INDEXED"
        assert body["backend_unavailable"] is False
        assert body["photo"]["id"] == stored_photo.id
