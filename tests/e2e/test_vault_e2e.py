from fastapi import status
from fastapi.testclient import TestClient

from tests.fixtures.auth_fixtures import FakeAuthProvider
from tests.fixtures.store_fixtures import FlakyBlobStore, FlakyMetadataStore
from vault_api.main import create_app
from vault_api.services import VaultServices

TEST_PASSWORD = "correct-horse"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_and_login(client: TestClient, email: str = "alice@example.com") -> str:
    response = client.post("/api/auth/register", json={"email": email, "password": TEST_PASSWORD, "username": "alice"})
    assert response.status_code == status.HTTP_200_OK

    response = client.post("/api/auth/login", json={"username": email, "password": TEST_PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    return response.json()["token"]


def test_register_login_upload_list(client: TestClient):
    token = register_and_login(client)

    response = client.post(
        "/api/files/upload",
        files=[("files", ("a.txt", b"0123456789", "text/plain"))],
        headers=auth_header(token),
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["message"] == "Upload success"
    assert "failed_at" not in body

    response = client.get("/api/files", headers=auth_header(token))
    assert response.status_code == status.HTTP_200_OK
    files = response.json()
    assert len(files) == 1
    assert files[0]["name"] == "a.txt"
    assert files[0]["type"] == "document"
    assert files[0]["size"] == 10
    assert files[0]["storage_path"].endswith(".txt")
    assert set(files[0]) == {"id", "owner_id", "name", "size", "type", "url", "storage_path", "created_at"}


def test_partial_batch_keeps_earlier_files(settings, auth_provider, blob_store, metadata_store):
    services = VaultServices.create(
        settings,
        auth_provider=auth_provider,
        blob_store=FlakyBlobStore(blob_store, fail_put_on={1}),
        metadata_store=metadata_store,
    )
    _, token = auth_provider.create_user("alice@example.com")

    with TestClient(create_app(settings=settings, services=services)) as client:
        response = client.post(
            "/api/files/upload",
            files=[
                ("files", ("one.png", b"png-bytes", "image/png")),
                ("files", ("two.mp4", b"mp4-bytes", "video/mp4")),
                ("files", ("three.pdf", b"pdf-bytes", "application/pdf")),
            ],
            headers=auth_header(token),
        )
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["message"] == "Partial upload"
        assert [record["name"] for record in body["files"]] == ["one.png"]
        assert body["files"][0]["type"] == "image"
        assert body["failed_at"] == 1
        assert body["error"]

        response = client.get("/api/files", headers=auth_header(token))
        assert [record["name"] for record in response.json()] == ["one.png"]


def test_list_degrades_to_empty_on_database_failure(settings, auth_provider, blob_store, metadata_store):
    services = VaultServices.create(
        settings,
        auth_provider=auth_provider,
        blob_store=blob_store,
        metadata_store=FlakyMetadataStore(metadata_store, fail_list=True),
    )
    _, token = auth_provider.create_user("alice@example.com")

    with TestClient(create_app(settings=settings, services=services)) as client:
        response = client.post(
            "/api/files/upload",
            files=[("files", ("a.txt", b"abc", "text/plain"))],
            headers=auth_header(token),
        )
        assert response.status_code == status.HTTP_200_OK

        response = client.get("/api/files", headers=auth_header(token))

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


def test_first_file_failure_is_a_server_error(settings, auth_provider, blob_store, metadata_store):
    services = VaultServices.create(
        settings,
        auth_provider=auth_provider,
        blob_store=FlakyBlobStore(blob_store, fail_put_on={0}),
        metadata_store=metadata_store,
    )
    _, token = auth_provider.create_user("alice@example.com")

    with TestClient(create_app(settings=settings, services=services)) as client:
        response = client.post(
            "/api/files/upload",
            files=[("files", ("a.txt", b"abc", "text/plain"))],
            headers=auth_header(token),
        )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "error" in response.json()


def test_delete_unknown_id_succeeds(client: TestClient, alice):
    _, token = alice

    response = client.delete("/api/files/does-not-exist", headers=auth_header(token))

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}


def test_upload_without_credentials_stores_nothing(client: TestClient, blob_store, metadata_store):
    response = client.post("/api/files/upload", files=[("files", ("a.txt", b"abc", "text/plain"))])

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "No Authorization header"}
    assert blob_store.list_blobs() == []
    assert metadata_store.list_all() == []


def test_upload_with_invalid_token(client: TestClient):
    response = client.post(
        "/api/files/upload",
        files=[("files", ("a.txt", b"abc", "text/plain"))],
        headers=auth_header("forged"),
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Invalid Token"}


def test_upload_without_files(client: TestClient, alice):
    _, token = alice

    response = client.post("/api/files/upload", headers=auth_header(token))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "No files"}


def test_upload_download_delete(client: TestClient, alice):
    _, token = alice
    response = client.post(
        "/api/files/upload",
        files=[("files", ("q3 report.pdf", b"%PDF-1.4", "application/pdf"))],
        headers=auth_header(token),
    )
    record = response.json()["files"][0]

    response = client.get(f"/api/files/{record['id']}/download", headers=auth_header(token))
    assert response.status_code == status.HTTP_200_OK
    assert response.content == b"%PDF-1.4"
    assert response.headers["content-disposition"] == "attachment; filename*=UTF-8''q3%20report.pdf"

    response = client.delete(f"/api/files/{record['id']}", headers=auth_header(token))
    assert response.status_code == status.HTTP_200_OK

    response = client.get("/api/files", headers=auth_header(token))
    assert response.json() == []

    response = client.get(f"/api/files/{record['id']}/download", headers=auth_header(token))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_other_users_cannot_touch_my_files(client: TestClient, alice, bob):
    _, alice_token = alice
    _, bob_token = bob
    response = client.post(
        "/api/files/upload",
        files=[("files", ("mine.txt", b"secret", "text/plain"))],
        headers=auth_header(alice_token),
    )
    record_id = response.json()["files"][0]["id"]

    assert client.get("/api/files", headers=auth_header(bob_token)).json() == []
    assert client.delete(f"/api/files/{record_id}", headers=auth_header(bob_token)).status_code == 403
    assert client.get(f"/api/files/{record_id}/download", headers=auth_header(bob_token)).status_code == 403
    assert len(client.get("/api/files", headers=auth_header(alice_token)).json()) == 1


def test_register_requires_email_and_password(client: TestClient):
    response = client.post("/api/auth/register", json={"email": "a@example.com"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Email and password required"}


def test_duplicate_registration_is_rejected(client: TestClient):
    register_and_login(client)

    response = client.post("/api/auth/register", json={"email": "alice@example.com", "password": TEST_PASSWORD})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "User already registered"}


def test_login_with_wrong_password(client: TestClient):
    register_and_login(client)

    response = client.post("/api/auth/login", json={"username": "alice@example.com", "password": "wrong"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Invalid login credentials"}


def test_login_without_session_is_forbidden(settings, blob_store, metadata_store):
    auth_provider = FakeAuthProvider(auto_confirm=False)
    auth_provider.sign_up("pending@example.com", TEST_PASSWORD)
    services = VaultServices.create(settings, auth_provider=auth_provider, blob_store=blob_store,
                                    metadata_store=metadata_store)

    with TestClient(create_app(settings=settings, services=services)) as client:
        response = client.post("/api/auth/login", json={"username": "pending@example.com", "password": TEST_PASSWORD})

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_logout_always_succeeds(client: TestClient, auth_provider, alice):
    _, token = alice

    response = client.post("/api/auth/logout", headers=auth_header(token))
    assert response.json() == {"message": "Logged out"}
    assert auth_provider.signed_out == [token]

    response = client.post("/api/auth/logout")
    assert response.status_code == status.HTTP_200_OK

    # the revoked token no longer works
    response = client.get("/api/files", headers=auth_header(token))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_storage_nodes(client: TestClient, settings):
    response = client.get("/api/storage/nodes")

    assert response.json() == [{"id": "default", "name": "Primary Vault", "bucket_name": settings.s3_bucket_name}]


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "ok"
    assert body["ready"] is True
    assert body["deployment_mode"] == "local-dev"


def test_malformed_json_is_a_bad_request(client: TestClient):
    response = client.post("/api/auth/login", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "error" in response.json()
