"""
Tests for the S3 publisher, using botocore's Stubber instead of a live bucket.
"""

import boto3
import pytest
from botocore.stub import ANY, Stubber

from everythingpdf_backend.configuration import make_runtime_config
from everythingpdf_backend.errors import PublishError
from everythingpdf_backend.publisher import S3Publisher, publisher_from_settings


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


class TestPublish:
    def test_uploads_pdf_and_returns_presigned_url(self, s3_client):
        publisher = S3Publisher(bucket="shares", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_response(
                "put_object",
                {},
                expected_params={
                    "Bucket": "shares",
                    "Key": ANY,
                    "Body": b"%PDF-1.7 data",
                    "ContentType": "application/pdf",
                },
            )
            url, key = publisher.publish_with_key(b"%PDF-1.7 data", "everythingpdf.pdf")
            stubber.assert_no_pending_responses()

        assert key.startswith("public/everythingpdf-")
        assert key.endswith(".pdf")
        assert "shares" in url
        assert "Signature" in url or "X-Amz-Signature" in url

    def test_public_url_mode(self, s3_client):
        publisher = S3Publisher(bucket="shares", client=s3_client, public_urls=True)
        with Stubber(s3_client) as stubber:
            stubber.add_response("put_object", {})
            url = publisher.publish(b"%PDF", "Trip Receipts.pdf")

        assert url.startswith("https://shares.s3.us-east-1.amazonaws.com/public/trip-receipts-")

    def test_client_error_becomes_publish_error(self, s3_client):
        publisher = S3Publisher(bucket="shares", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
            with pytest.raises(PublishError, match="Upload failed"):
                publisher.publish(b"%PDF", "everythingpdf.pdf")

    def test_bucket_is_required(self):
        with pytest.raises(ValueError):
            S3Publisher(bucket="")


class TestPublisherFromSettings:
    def test_no_bucket_means_no_publisher(self):
        assert publisher_from_settings(make_runtime_config()) is None

    def test_bucket_from_settings(self):
        settings = make_runtime_config({"s3": {"bucket": "shares", "expiration": 60}})
        publisher = publisher_from_settings(settings)
        assert publisher.bucket == "shares"
        assert publisher.expiration == 60
        assert publisher.prefix == "public/"
