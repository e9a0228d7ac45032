import pytest

from clients.s3_client import ObjectStorage, build_note_key, get_content_type
from utils.exceptions import CollaboratorError


class DummyS3:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[(Bucket, Key)] = (Body, ContentType)

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)


def test_note_keys_and_content_types():
    assert build_note_key("c1", "guide.pdf") == "notes/c1/guide.pdf"
    assert get_content_type("guide.DOCX").endswith("wordprocessingml.document")
    assert get_content_type("archive.zip") == "application/octet-stream"


def test_upload_then_delete():
    s3 = DummyS3()
    storage = ObjectStorage("course-notes", region="eu-west-1", client=s3)

    url = storage.upload(b"hello", "notes/c1/a.txt")

    assert url == "https://course-notes.s3.eu-west-1.amazonaws.com/notes/c1/a.txt"
    assert s3.objects[("course-notes", "notes/c1/a.txt")][1] == "text/plain"
    assert s3.objects[("course-notes", "notes/c1/a.txt")][0] == b"hello"
    assert storage.delete("notes/c1/a.txt") is True
    assert ("course-notes", "notes/c1/a.txt") not in s3.objects


def test_missing_bucket():
    with pytest.raises(CollaboratorError):
        ObjectStorage(None, client=DummyS3()).upload(b"x", "notes/c/x.txt")


@pytest.mark.asyncio
async def test_async_upload_uses_explicit_bucket():
    s3 = DummyS3()
    storage = ObjectStorage("default-bucket", client=s3)

    url = await storage.upload_async(b"pdf", "notes/c1/b.pdf", bucket="other-bucket")

    assert url.startswith("https://other-bucket.s3.us-east-1.amazonaws.com/")
    assert ("other-bucket", "notes/c1/b.pdf") in s3.objects


def test_object_key_only_for_own_bucket():
    storage = ObjectStorage("course-notes", region="eu-west-1", client=DummyS3())

    assert storage.object_key("https://course-notes.s3.eu-west-1.amazonaws.com/notes/c1/a.txt") == "notes/c1/a.txt"
    assert storage.object_key("https://example.com/notes/c1/a.txt") is None
    assert storage.object_key("") is None
    assert ObjectStorage(None, client=DummyS3()).object_key("https://x.s3.us-east-1.amazonaws.com/a") is None


@pytest.mark.asyncio
async def test_async_delete_removes_object():
    s3 = DummyS3()
    storage = ObjectStorage("course-notes", client=s3)
    storage.upload(b"hello", "notes/c1/a.txt")

    assert await storage.delete_async("notes/c1/a.txt") is True
    assert s3.objects == {}
