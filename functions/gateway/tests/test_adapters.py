import unittest
from unittest.mock import MagicMock, patch

from firebase_admin import auth

from gateway.documents import FirestoreDocumentStore, InMemoryDocumentStore
from gateway.identity import (
    FirebaseIdentityStore,
    IdentityExistsError,
    IdentityNotFoundError,
    InMemoryIdentityStore,
)
from gateway.storage import (
    FirebaseBlobStore,
    InMemoryBlobStore,
    S3BlobStore,
    generate_object_name,
)


def _snapshot(doc_id, data, exists=True):
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.exists = exists
    snapshot.to_dict.return_value = data
    return snapshot


class InMemoryIdentityStoreTests(unittest.TestCase):
    def test_create_lookup_delete(self):
        store = InMemoryIdentityStore()
        created = store.create_user("ada@example.com")
        self.assertEqual(store.get_user_by_email("ada@example.com"), created)

        with self.assertRaises(IdentityExistsError):
            store.create_user("ada@example.com")

        store.delete_user(created.uid)
        with self.assertRaises(IdentityNotFoundError):
            store.get_user_by_email("ada@example.com")


class FirebaseIdentityStoreTests(unittest.TestCase):
    @patch.object(auth, "create_user")
    def test_create_user(self, create_user):
        create_user.return_value = MagicMock(uid="uid-1", email="ada@example.com")
        store = FirebaseIdentityStore(app="app")
        record = store.create_user("ada@example.com")
        create_user.assert_called_once_with(email="ada@example.com", app="app")
        self.assertEqual(record.uid, "uid-1")
        self.assertEqual(record.email, "ada@example.com")

    @patch.object(auth, "create_user")
    def test_duplicate_email(self, create_user):
        create_user.side_effect = auth.EmailAlreadyExistsError("taken", None, None)
        with self.assertRaises(IdentityExistsError):
            FirebaseIdentityStore().create_user("ada@example.com")

    @patch.object(auth, "get_user_by_email")
    def test_unknown_email(self, get_user_by_email):
        get_user_by_email.side_effect = auth.UserNotFoundError("missing")
        with self.assertRaises(IdentityNotFoundError):
            FirebaseIdentityStore().get_user_by_email("nobody@example.com")

    @patch.object(auth, "delete_user")
    def test_delete_user(self, delete_user):
        FirebaseIdentityStore(app="app").delete_user("uid-1")
        delete_user.assert_called_once_with("uid-1", app="app")


class InMemoryDocumentStoreTests(unittest.TestCase):
    def test_merge_and_replace(self):
        store = InMemoryDocumentStore()
        doc_id = store.add("items", {"a": 1, "b": 2})
        store.set("items", doc_id, {"b": 3})
        self.assertEqual(store.get("items", doc_id).data, {"a": 1, "b": 3})

        store.set("items", doc_id, {"c": 4}, merge=False)
        self.assertEqual(store.get("items", doc_id).data, {"c": 4})

    def test_returned_data_is_a_copy(self):
        store = InMemoryDocumentStore()
        doc_id = store.add("items", {"a": 1})
        store.get("items", doc_id).data["a"] = 99
        self.assertEqual(store.get("items", doc_id).data, {"a": 1})

    def test_merge_is_recursive_for_nested_maps(self):
        store = InMemoryDocumentStore()
        doc_id = store.add("items", {"meta": {"a": 1, "tags": {"x": True}}, "n": 1})
        store.set("items", doc_id, {"meta": {"b": 2, "tags": {"y": False}}})
        self.assertEqual(
            store.get("items", doc_id).data,
            {"meta": {"a": 1, "b": 2, "tags": {"x": True, "y": False}}, "n": 1},
        )

        store.set("items", doc_id, {"meta": 5})
        self.assertEqual(store.get("items", doc_id).data, {"meta": 5, "n": 1})

    def test_collections_are_separate(self):
        store = InMemoryDocumentStore()
        store.add("items", {"a": 1})
        self.assertEqual(store.list("users"), [])
        self.assertEqual(len(store.list("items")), 1)


class FirestoreDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.collection = self.client.collection.return_value
        self.document = self.collection.document.return_value
        self.store = FirestoreDocumentStore(self.client)

    def test_add_returns_generated_id(self):
        self.collection.add.return_value = (None, MagicMock(id="doc-1"))
        self.assertEqual(self.store.add("items", {"name": "x"}), "doc-1")
        self.client.collection.assert_called_with("items")
        self.collection.add.assert_called_once_with({"name": "x"})

    def test_get_existing_and_missing(self):
        self.document.get.return_value = _snapshot("doc-1", {"name": "x"})
        found = self.store.get("items", "doc-1")
        self.assertEqual(found.as_dict(), {"id": "doc-1", "name": "x"})

        self.document.get.return_value = _snapshot("doc-2", None, exists=False)
        self.assertIsNone(self.store.get("items", "doc-2"))

    def test_set_uses_merge(self):
        self.store.set("items", "doc-1", {"b": 3})
        self.collection.document.assert_called_with("doc-1")
        self.document.set.assert_called_once_with({"b": 3}, merge=True)

    def test_delete(self):
        self.store.delete("items", "doc-1")
        self.document.delete.assert_called_once_with()

    def test_list_streams_collection(self):
        self.collection.stream.return_value = [
            _snapshot("a", {"n": 1}),
            _snapshot("b", {"n": 2}),
        ]
        docs = self.store.list("items")
        self.assertEqual(
            [doc.as_dict() for doc in docs],
            [{"id": "a", "n": 1}, {"id": "b", "n": 2}],
        )


class ObjectNameTests(unittest.TestCase):
    def test_keeps_extension_and_prefix(self):
        name = generate_object_name("photo.png", "uploads")
        self.assertTrue(name.startswith("uploads/"))
        self.assertTrue(name.endswith(".png"))

    def test_names_are_unique(self):
        names = {generate_object_name("photo.png") for _ in range(100)}
        self.assertEqual(len(names), 100)

    def test_without_extension_or_filename(self):
        self.assertNotIn(".", generate_object_name("README", "uploads"))
        self.assertTrue(generate_object_name(None, "uploads").startswith("uploads/"))

    def test_only_last_suffix_kept(self):
        self.assertTrue(generate_object_name("archive.tar.gz").endswith(".gz"))


class BlobStoreTests(unittest.TestCase):
    def test_in_memory_url(self):
        store = InMemoryBlobStore(bucket="b")
        url = store.upload("uploads/x.png", b"data", "image/png")
        self.assertEqual(url, "https://storage.googleapis.com/b/uploads/x.png")
        self.assertEqual(store.stored_objects["uploads/x.png"], (b"data", "image/png"))

    @patch("gateway.storage.storage.bucket")
    def test_firebase_upload_makes_blob_public(self, bucket_factory):
        bucket = bucket_factory.return_value
        bucket.name = "demo-bucket"
        blob = bucket.blob.return_value
        blob.name = "uploads/x.png"

        store = FirebaseBlobStore("demo-bucket", app="app")
        url = store.upload("uploads/x.png", b"data", "image/png")

        bucket_factory.assert_called_once_with("demo-bucket", app="app")
        bucket.blob.assert_called_once_with("uploads/x.png")
        blob.upload_from_string.assert_called_once_with(b"data", content_type="image/png")
        blob.make_public.assert_called_once_with()
        self.assertEqual(url, "https://storage.googleapis.com/demo-bucket/uploads/x.png")

    @patch("gateway.storage.storage.bucket")
    def test_firebase_failed_write_is_not_made_public(self, bucket_factory):
        blob = bucket_factory.return_value.blob.return_value
        blob.upload_from_string.side_effect = OSError("write failed")
        store = FirebaseBlobStore("demo-bucket")
        with self.assertRaises(OSError):
            store.upload("uploads/x.png", b"data", "image/png")
        blob.make_public.assert_not_called()

    @patch("gateway.storage.boto3.client")
    def test_s3_upload(self, client_factory):
        client = client_factory.return_value
        store = S3BlobStore(
            bucket="media",
            region="ap-guangzhou",
            endpoint="https://cos.example.com",
            access_key_id="key",
            secret_access_key="secret",
        )
        url = store.upload("uploads/x.png", b"data", "image/png")
        client.put_object.assert_called_once_with(
            Bucket="media",
            Key="uploads/x.png",
            Body=b"data",
            ContentType="image/png",
            ACL="public-read",
        )
        self.assertEqual(url, "https://media.cos.example.com/uploads/x.png")

    @patch("gateway.storage.boto3.client")
    def test_s3_public_base_url(self, client_factory):
        store = S3BlobStore(
            bucket="media",
            region="us-east-1",
            endpoint="",
            access_key_id="",
            secret_access_key="",
            public_base_url="https://cdn.example.com/",
        )
        self.assertEqual(
            store.upload("uploads/x.png", b"d", "image/png"),
            "https://cdn.example.com/uploads/x.png",
        )

    @patch("gateway.storage.boto3.client")
    def test_s3_default_aws_url(self, client_factory):
        store = S3BlobStore(
            bucket="media",
            region="eu-west-1",
            endpoint="",
            access_key_id="",
            secret_access_key="",
        )
        self.assertEqual(
            store.public_url("uploads/x.png"),
            "https://media.s3.eu-west-1.amazonaws.com/uploads/x.png",
        )

    @patch("gateway.storage.boto3.client")
    def test_s3_without_region_or_endpoint_is_rejected(self, client_factory):
        with self.assertRaises(ValueError):
            S3BlobStore(
                bucket="media",
                region="",
                endpoint="",
                access_key_id="",
                secret_access_key="",
            )
        client_factory.assert_not_called()


if __name__ == "__main__":
    unittest.main()
