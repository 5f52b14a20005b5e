import os

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from tests.consts import TEST_BUCKET_NAME, TEST_REGION
from tests.fixtures.auth_fixtures import FakeAuthProvider
from vault_api.config.settings import Settings
from vault_api.database.sqlite_store import SQLiteMetadataStore
from vault_api.main import create_app
from vault_api.services import VaultServices
from vault_api.storage.local_store import LocalBlobStore
from vault_api.storage.s3_store import S3BlobStore


def point_away_from_aws() -> None:
    """Make sure boto3 never talks to a real account from the test suite."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = TEST_REGION
    os.environ.pop("AWS_ENDPOINT_URL", None)
    os.environ.pop("AWS_PROFILE", None)


@pytest.fixture
def mocked_aws():
    """S3 faked by moto, with the test bucket already created."""
    point_away_from_aws()
    with mock_aws():
        s3_client = boto3.client("s3", region_name=TEST_REGION)
        s3_client.create_bucket(Bucket=TEST_BUCKET_NAME)
        yield s3_client


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        deployment_mode="local-dev",
        storage_dir=str(tmp_path / "storage"),
        db_path=str(tmp_path / "vault.db"),
        s3_bucket_name=TEST_BUCKET_NAME,
        auth_url="http://fake-auth.invalid",
    )


@pytest.fixture
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def metadata_store(settings) -> SQLiteMetadataStore:
    store = SQLiteMetadataStore(db_path=settings.db_path)
    store.init_schema()
    return store


@pytest.fixture
def blob_store(settings) -> LocalBlobStore:
    return LocalBlobStore(storage_dir=settings.storage_dir, bucket_name=settings.s3_bucket_name)


@pytest.fixture
def s3_blob_store(mocked_aws) -> S3BlobStore:
    return S3BlobStore(bucket_name=TEST_BUCKET_NAME, s3_client=mocked_aws, region=TEST_REGION)


@pytest.fixture
def services(settings, auth_provider, blob_store, metadata_store) -> VaultServices:
    return VaultServices.create(
        settings,
        auth_provider=auth_provider,
        blob_store=blob_store,
        metadata_store=metadata_store,
    )


@pytest.fixture
def client(settings, services) -> TestClient:
    app = create_app(settings=settings, services=services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def alice(auth_provider):
    """(user_id, token) of a registered user."""
    return auth_provider.create_user("alice@example.com")


@pytest.fixture
def bob(auth_provider):
    return auth_provider.create_user("bob@example.com")
