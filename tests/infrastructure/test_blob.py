"""
BlobRepository tests.

Requests go to a mocked BlobServiceClient; URL building uses a real,
offline client so encoding matches the SDK.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobServiceClient

from config import StorageConfig
from exceptions import TransientIOError
from infrastructure.blob import BlobRepository


@pytest.fixture
def blob_service():
    service = MagicMock()
    service.get_blob_client.return_value.upload_blob.return_value = {
        "etag": "0x8D9",
        "last_modified": datetime(2024, 1, 2, tzinfo=timezone.utc),
    }
    return service


@pytest.fixture
def repo(blob_service):
    return BlobRepository(StorageConfig(account_name="teststorage"), blob_service=blob_service)


class TestContainers:

    def test_created(self, repo, blob_service):
        assert repo.create_container_if_absent("inputfiles") is True
        blob_service.create_container.assert_called_once_with("inputfiles")

    def test_existing_container_reused(self, repo, blob_service):
        blob_service.create_container.side_effect = ResourceExistsError("ContainerAlreadyExists")
        assert repo.create_container_if_absent("inputfiles") is False

    def test_other_failure_is_transient_io(self, repo, blob_service):
        blob_service.create_container.side_effect = AzureError("connection reset")
        with pytest.raises(TransientIOError) as exc_info:
            repo.create_container_if_absent("inputfiles")
        assert exc_info.value.resource_id == "inputfiles"


class TestUploads:

    def test_upload_blob_overwrites(self, repo, blob_service):
        info = repo.upload_blob("inputfiles", "taskdata0.txt", b"data")

        blob_service.get_blob_client.assert_called_once_with(container="inputfiles", blob="taskdata0.txt")
        _, kwargs = blob_service.get_blob_client.return_value.upload_blob.call_args
        assert kwargs["overwrite"] is True
        assert info["etag"] == "0x8D9"
        assert info["last_modified"] == "2024-01-02T00:00:00+00:00"

    def test_upload_failure_is_transient_io(self, repo, blob_service):
        blob_service.get_blob_client.return_value.upload_blob.side_effect = AzureError("timeout")
        with pytest.raises(TransientIOError) as exc_info:
            repo.upload_blob("inputfiles", "taskdata0.txt", b"data")
        assert exc_info.value.resource_id == "inputfiles/taskdata0.txt"

    def test_upload_file_reports_size(self, repo, tmp_path):
        path = tmp_path / "taskdata0.txt"
        path.write_bytes(b"12345")
        info = repo.upload_file("inputfiles", "taskdata0.txt", path)
        assert info["size"] == 5
        assert info["name"] == "taskdata0.txt"

    def test_missing_local_file_is_transient_io(self, repo, tmp_path, blob_service):
        with pytest.raises(TransientIOError, match="Cannot read local input"):
            repo.upload_file("inputfiles", "missing.txt", tmp_path / "missing.txt")
        blob_service.get_blob_client.assert_not_called()


def _url_repo(config):
    """Repository over a real, credential-less service client; building urls makes no request."""
    return BlobRepository(config, blob_service=BlobServiceClient(account_url=config.blob_endpoint))


class TestBlobUrl:

    def test_plain_url_without_key(self):
        repo = _url_repo(StorageConfig(account_name="teststorage"))
        assert repo.blob_url("inputfiles", "taskdata0.txt") == \
            "https://teststorage.blob.core.windows.net/inputfiles/taskdata0.txt"

    def test_read_sas_with_key(self):
        repo = _url_repo(StorageConfig(account_name="teststorage", account_key="dGVzdC1rZXk="))
        url = repo.blob_url("inputfiles", "taskdata0.txt")

        base, query = url.split("?", 1)
        assert base == "https://teststorage.blob.core.windows.net/inputfiles/taskdata0.txt"
        assert "sp=r" in query
        assert "sig=" in query

    def test_blob_name_is_percent_encoded(self):
        repo = _url_repo(StorageConfig(account_name="teststorage"))
        assert repo.blob_url("inputfiles", "task data#1.txt") == \
            "https://teststorage.blob.core.windows.net/inputfiles/task%20data%231.txt"

    def test_sas_stays_in_query_for_unsafe_names(self):
        repo = _url_repo(StorageConfig(account_name="teststorage", account_key="dGVzdC1rZXk="))
        url = repo.blob_url("inputfiles", "task data#1.txt")

        assert "#" not in url
        base, query = url.split("?", 1)
        assert base.endswith("/inputfiles/task%20data%231.txt")
        assert "sig=" in query

    def test_custom_endpoint(self):
        repo = _url_repo(StorageConfig(account_name="devstoreaccount1",
                                       account_url="http://127.0.0.1:10000/devstoreaccount1/"))
        assert repo.blob_url("c", "n") == "http://127.0.0.1:10000/devstoreaccount1/c/n"
