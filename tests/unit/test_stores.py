"""
Unit tests for file stores.
"""
import io
from pathlib import Path
from typing import List

import pytest
from botocore.exceptions import ClientError

from chunk_stream.exceptions import ConfigurationError, InitializationError
from chunk_stream.store import (
    FileInfo,
    LocalFileStore,
    S3FileStore,
    get_file_store,
)
from chunk_stream.stream import create_read_stream

from .utils import generate_bytes, parametrize, run

S3_CONFIG = {
    "type": "s3",
    "credentials": {
        "endpoint_url": None,
        "access_key_id": None,
        "secret_access_key": None,
        "bucket": "default-bucket",
    },
    "boto_config": {
        "addressing_style": "auto",
        "region_name": "us-east-1",
    },
}


class TestLocalFileStore:
    """
    Tests for LocalFileStore.
    """

    def test_stat(self, tmp_path: Path) -> None:
        file_path = tmp_path / "data.bin"
        file_path.write_bytes(generate_bytes(100))
        store = LocalFileStore()

        assert run(store.stat(str(file_path))) == FileInfo(exists=True, size=100)
        assert run(store.stat(file_path.as_uri())) == FileInfo(exists=True, size=100)
        assert run(store.stat(str(tmp_path / "missing"))) == FileInfo(exists=False)

    def test_stat_directory(self, tmp_path: Path) -> None:
        with pytest.raises(IsADirectoryError):
            run(LocalFileStore().stat(str(tmp_path)))

    @parametrize(
        {
            "id": "head",
            "args": {
                "offset": 0,
                "length": 10,
                "expected": slice(0, 10),
            },
        },
        {
            "id": "tail shorter than requested",
            "args": {
                "offset": 95,
                "length": 10,
                "expected": slice(95, 100),
            },
        },
        {
            "id": "past end",
            "args": {
                "offset": 100,
                "length": 10,
                "expected": slice(100, 100),
            },
        },
    )
    def test_read_range(self, tmp_path: Path, offset: int, length: int, expected: slice) -> None:
        data = generate_bytes(100)
        file_path = tmp_path / "data.bin"
        file_path.write_bytes(data)

        assert run(LocalFileStore().read_range(str(file_path), offset, length)) == data[expected]

    def test_stream_local_file(self, tmp_path: Path) -> None:
        data = generate_bytes(1000)
        file_path = tmp_path / "data.bin"
        file_path.write_bytes(data)

        async def _read():
            stream, _ = create_read_stream(file_path.as_uri(), LocalFileStore(), chunk_size=128)
            return await stream.read_all()

        assert run(_read()) == data

    def test_stream_directory(self, tmp_path: Path) -> None:
        async def _read():
            stream, _ = create_read_stream(str(tmp_path), LocalFileStore())
            return await stream.read_all()

        with pytest.raises(InitializationError):
            run(_read())


class FakeBody:
    def __init__(self, data: bytes) -> None:
        self._data = io.BytesIO(data)

    def read(self) -> bytes:
        return self._data.read()


class FakeS3Client:
    """
    S3 client stub for a single object.
    """

    def __init__(self, objects: dict) -> None:
        self.objects = objects
        self.get_requests: List[dict] = []

    def head_object(self, Bucket: str, Key: str) -> dict:
        if (Bucket, Key) not in self.objects:
            raise ClientError(
                {"Error": {"Code": "404"}, "ResponseMetadata": {"HTTPStatusCode": 404}},
                "HeadObject",
            )
        return {"ContentLength": len(self.objects[(Bucket, Key)])}

    def get_object(self, Bucket: str, Key: str, Range: str) -> dict:
        self.get_requests.append({"Bucket": Bucket, "Key": Key, "Range": Range})
        data = self.objects[(Bucket, Key)]
        start, end = map(int, Range[len("bytes="):].split("-"))
        if start >= len(data):
            raise ClientError(
                {"Error": {"Code": "InvalidRange"}, "ResponseMetadata": {"HTTPStatusCode": 416}},
                "GetObject",
            )
        return {"Body": FakeBody(data[start:end + 1])}


class FakeClientFactory:
    def __init__(self, client: FakeS3Client) -> None:
        self._client = client

    def create_s3_client(self) -> FakeS3Client:
        return self._client


class TestS3FileStore:
    """
    Tests for S3FileStore.
    """

    def test_stat(self) -> None:
        client = FakeS3Client({("bucket", "path/data.bin"): generate_bytes(100)})
        store = S3FileStore(S3_CONFIG, client_factory=FakeClientFactory(client))

        assert run(store.stat("s3://bucket/path/data.bin")) == FileInfo(exists=True, size=100)
        assert run(store.stat("s3://bucket/missing")) == FileInfo(exists=False)

    def test_stat_error(self) -> None:
        client = FakeS3Client({})
        client.head_object = _raise_access_denied  # type: ignore[assignment]
        store = S3FileStore(S3_CONFIG, client_factory=FakeClientFactory(client))

        with pytest.raises(ClientError):
            run(store.stat("s3://bucket/data.bin"))

    def test_read_range(self) -> None:
        data = generate_bytes(100)
        client = FakeS3Client({("default-bucket", "data.bin"): data})
        store = S3FileStore(S3_CONFIG, client_factory=FakeClientFactory(client))

        assert run(store.read_range("/data.bin", 10, 20)) == data[10:30]
        assert run(store.read_range("data.bin", 90, 20)) == data[90:]
        assert run(store.read_range("data.bin", 100, 20)) == b""
        assert client.get_requests[0] == {
            "Bucket": "default-bucket",
            "Key": "data.bin",
            "Range": "bytes=10-29",
        }

    def test_bucket_is_required(self) -> None:
        config = {**S3_CONFIG, "credentials": {**S3_CONFIG["credentials"], "bucket": None}}
        store = S3FileStore(config, client_factory=FakeClientFactory(FakeS3Client({})))

        with pytest.raises(ConfigurationError):
            run(store.stat("data.bin"))

    def test_stream_object(self) -> None:
        data = generate_bytes(1000)
        client = FakeS3Client({("bucket", "data.bin"): data})
        store = S3FileStore(S3_CONFIG, client_factory=FakeClientFactory(client))

        async def _read():
            stream, _ = create_read_stream("s3://bucket/data.bin", store, chunk_size=300)
            return await stream.read_all()

        assert run(_read()) == data
        assert [request["Range"] for request in client.get_requests] == [
            "bytes=0-299",
            "bytes=300-599",
            "bytes=600-899",
            "bytes=900-1199",
        ]


def _raise_access_denied(Bucket: str, Key: str) -> dict:
    raise ClientError(
        {"Error": {"Code": "403"}, "ResponseMetadata": {"HTTPStatusCode": 403}},
        "HeadObject",
    )


def test_get_file_store() -> None:
    assert isinstance(get_file_store({"type": "local"}), LocalFileStore)
    assert isinstance(get_file_store(S3_CONFIG), S3FileStore)


@pytest.mark.parametrize("config", [{}, {"type": "ftp"}])
def test_get_file_store_invalid_config(config: dict) -> None:
    with pytest.raises(ConfigurationError):
        get_file_store(config)
