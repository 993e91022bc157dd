from botocore.stub import ANY

from app.config import S3BucketSettings
from app.models.file import StoredFile
from app.services.storage import public_url


class TestPublicUrl:
    def test_path_style(self):
        bucket = S3BucketSettings(endpoint="http://minio:9000/", bucket_name="assets", force_path_style=True)

        assert public_url(bucket, "avatars/a.png") == "http://minio:9000/assets/avatars/a.png"

    def test_virtual_hosted_style(self):
        bucket = S3BucketSettings(endpoint="https://s3.example.com", bucket_name="assets", force_path_style=False)

        assert public_url(bucket, "avatars/a.png") == "https://assets.s3.example.com/avatars/a.png"

    def test_virtual_hosted_style_keeps_port(self):
        bucket = S3BucketSettings(endpoint="http://localhost:9000", bucket_name="assets")

        assert public_url(bucket, "/a.png") == "http://assets.localhost:9000/a.png"

    def test_leading_slash_is_dropped(self, storage):
        assert storage.get_public_url("/x/y.jpg") == "http://localhost:9000/public-test/x/y.jpg"


class TestUploads:
    def test_upload_public_records_url(self, storage, public_s3, db, make_user):
        user = make_user()
        public_s3.add_response(
            "put_object",
            {},
            {"Bucket": "public-test", "Key": "docs/a.png", "Body": ANY, "ContentType": "image/png"},
        )

        row = storage.upload_public(
            db, content=b"abc", key="docs/a.png", content_type="image/png", uploaded_by_id=user.id
        )
        db.commit()

        public_s3.assert_no_pending_responses()
        assert row.url == "http://localhost:9000/public-test/docs/a.png"
        assert row.is_public
        assert db.get(StoredFile, row.id).size == 3

    def test_upload_private_has_no_url(self, storage, public_s3, private_s3, db, make_user):
        """Should go through the private bucket's client and store no URL."""
        user = make_user()
        private_s3.add_response(
            "put_object",
            {},
            {"Bucket": "private-test", "Key": "assets/report.pdf", "Body": ANY, "ContentType": "application/pdf"},
        )

        row = storage.upload_private(
            db, content=b"%PDF-1.7", key="assets/report.pdf", content_type="application/pdf", uploaded_by_id=user.id
        )
        db.commit()

        private_s3.assert_no_pending_responses()
        public_s3.assert_no_pending_responses()
        assert row.url is None
        assert not row.is_public
        assert row.bucket_name == "private-test"
        assert row.uploaded_by_id == user.id
