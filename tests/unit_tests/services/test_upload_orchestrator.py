import pytest

from tests.fixtures.store_fixtures import FlakyBlobStore, FlakyMetadataStore
from vault_api.auth.identity import IdentityVerifier
from vault_api.errors import AuthError, AuthErrorKind, DbError, StorageError, ValidationError
from vault_api.schemas import ContentClass, UploadItem
from vault_api.services.upload import UploadOrchestrator, classify_content
from vault_api.storage.keys import KeyGenerator


def make_orchestrator(auth_provider, blob_store, metadata_store, compensate=False) -> UploadOrchestrator:
    return UploadOrchestrator(
        verifier=IdentityVerifier(auth_provider),
        key_generator=KeyGenerator(),
        blob_store=blob_store,
        metadata_store=metadata_store,
        compensate_orphaned_blobs=compensate,
    )


def make_batch(count: int):
    return [UploadItem(filename=f"file-{i}.txt", content=b"x" * (i + 1), media_type="text/plain") for i in range(count)]


@pytest.mark.parametrize(
    "media_type, expected",
    [
        ("image/png", ContentClass.IMAGE),
        ("IMAGE/JPEG", ContentClass.IMAGE),
        ("video/mp4", ContentClass.VIDEO),
        ("application/pdf", ContentClass.DOCUMENT),
        ("text/plain", ContentClass.DOCUMENT),
        ("imagery/odd", ContentClass.DOCUMENT),
        ("", ContentClass.DOCUMENT),
        (None, ContentClass.DOCUMENT),
    ],
)
def test_classify_content(media_type, expected):
    assert classify_content(media_type) == expected


def test_upload_stores_blob_and_record(auth_provider, alice, blob_store, metadata_store):
    user_id, token = alice
    orchestrator = make_orchestrator(auth_provider, blob_store, metadata_store)

    report = orchestrator.upload(
        f"Bearer {token}",
        [UploadItem(filename="cat.png", content=b"\x89PNG....", media_type="image/png")],
    )

    assert report.complete
    record = report.succeeded[0]
    assert record.owner_id == user_id
    assert record.content_class == ContentClass.IMAGE
    assert record.byte_size == 8
    assert record.storage_key.startswith(f"{user_id}/")
    assert record.storage_key.endswith(".png")
    assert record.access_url == blob_store.public_url(record.storage_key)
    assert blob_store.get(record.storage_key).content == b"\x89PNG...."


def test_declared_size_is_recorded(auth_provider, alice, blob_store, metadata_store):
    _, token = alice
    orchestrator = make_orchestrator(auth_provider, blob_store, metadata_store)

    report = orchestrator.upload(
        f"Bearer {token}",
        [UploadItem(filename="a.bin", content=b"abc", media_type="application/octet-stream", declared_size=3)],
    )

    assert report.succeeded[0].byte_size == 3


def test_bad_token_fails_before_any_store_is_touched(auth_provider, blob_store, metadata_store):
    flaky_blobs = FlakyBlobStore(blob_store)
    flaky_records = FlakyMetadataStore(metadata_store)
    orchestrator = make_orchestrator(auth_provider, flaky_blobs, flaky_records)

    with pytest.raises(AuthError) as exc_info:
        orchestrator.upload("Bearer not-a-real-token", make_batch(2))

    assert exc_info.value.kind == AuthErrorKind.INVALID
    assert flaky_blobs.put_calls == []
    assert flaky_records.insert_calls == 0


def test_missing_credential_is_rejected(auth_provider, blob_store, metadata_store):
    orchestrator = make_orchestrator(auth_provider, blob_store, metadata_store)

    with pytest.raises(AuthError) as exc_info:
        orchestrator.upload(None, make_batch(1))

    assert exc_info.value.kind == AuthErrorKind.MISSING


def test_empty_batch_is_rejected(auth_provider, alice, blob_store, metadata_store):
    _, token = alice
    orchestrator = make_orchestrator(auth_provider, blob_store, metadata_store)

    with pytest.raises(ValidationError):
        orchestrator.upload(f"Bearer {token}", [])


def test_records_come_back_in_input_order(auth_provider, alice, blob_store, metadata_store):
    _, token = alice
    orchestrator = make_orchestrator(auth_provider, blob_store, metadata_store)

    report = orchestrator.upload(f"Bearer {token}", make_batch(4))

    assert report.complete
    assert [record.display_name for record in report.succeeded] == [f"file-{i}.txt" for i in range(4)]


def test_storage_failure_stops_the_batch(auth_provider, alice, blob_store, metadata_store):
    user_id, token = alice
    flaky_blobs = FlakyBlobStore(blob_store, fail_put_on={1})
    orchestrator = make_orchestrator(auth_provider, flaky_blobs, metadata_store)

    report = orchestrator.upload(f"Bearer {token}", make_batch(3))

    assert not report.complete
    assert report.failed_at == 1
    assert isinstance(report.error, StorageError)
    assert [record.display_name for record in report.succeeded] == ["file-0.txt"]
    assert report.remaining == 2
    # the third file was never attempted
    assert len(flaky_blobs.put_calls) == 2
    assert len(metadata_store.list_by_owner(user_id)) == 1


def test_first_file_failure_commits_nothing(auth_provider, alice, blob_store, metadata_store):
    user_id, token = alice
    orchestrator = make_orchestrator(auth_provider, FlakyBlobStore(blob_store, fail_put_on={0}), metadata_store)

    report = orchestrator.upload(f"Bearer {token}", make_batch(2))

    assert report.failed_at == 0
    assert report.succeeded == []
    assert metadata_store.list_by_owner(user_id) == []


def test_record_failure_leaves_an_orphaned_blob(auth_provider, alice, blob_store, metadata_store):
    user_id, token = alice
    flaky_blobs = FlakyBlobStore(blob_store)
    flaky_records = FlakyMetadataStore(metadata_store, fail_insert_on={0})
    orchestrator = make_orchestrator(auth_provider, flaky_blobs, flaky_records)

    report = orchestrator.upload(f"Bearer {token}", make_batch(2))

    assert report.failed_at == 0
    assert isinstance(report.error, DbError)
    assert metadata_store.list_by_owner(user_id) == []
    assert [blob.key for blob in blob_store.list_blobs()] == flaky_blobs.put_calls
    assert flaky_blobs.remove_calls == []


def test_record_failure_removes_blob_when_compensating(auth_provider, alice, blob_store, metadata_store):
    _, token = alice
    flaky_blobs = FlakyBlobStore(blob_store)
    flaky_records = FlakyMetadataStore(metadata_store, fail_insert_on={1})
    orchestrator = make_orchestrator(auth_provider, flaky_blobs, flaky_records, compensate=True)

    report = orchestrator.upload(f"Bearer {token}", make_batch(3))

    assert report.failed_at == 1
    assert flaky_blobs.remove_calls == [flaky_blobs.put_calls[1]]
    assert [blob.key for blob in blob_store.list_blobs()] == [report.succeeded[0].storage_key]


def test_failed_compensation_still_reports_the_db_error(auth_provider, alice, blob_store, metadata_store):
    _, token = alice
    flaky_blobs = FlakyBlobStore(blob_store, fail_remove=True)
    flaky_records = FlakyMetadataStore(metadata_store, fail_insert_on={0})
    orchestrator = make_orchestrator(auth_provider, flaky_blobs, flaky_records, compensate=True)

    report = orchestrator.upload(f"Bearer {token}", make_batch(1))

    assert isinstance(report.error, DbError)
    assert len(blob_store.list_blobs()) == 1
