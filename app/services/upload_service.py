import logging
import uuid
from typing import Optional
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from app.config import settings
from app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def get_r2_client():
    """Get Cloudflare R2 client (S3-compatible)"""
    return boto3.client(
        's3',
        endpoint_url=settings.r2_endpoint,
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        region_name='auto'
    )


class ImageUploader:
    """Stores uploaded media in the R2 bucket and returns public URLs"""

    def __init__(self, bucket: Optional[str] = None, public_url: Optional[str] = None, client=None):
        self.bucket = bucket or settings.r2_bucket
        self.public_url = (public_url or settings.r2_public_url or "").rstrip("/")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_r2_client()
        return self._client

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        folder: str = "images"
    ) -> dict:
        """
        Upload a file to R2.

        Returns dict with url and key. Raises ExternalServiceError on failure.
        """
        # Generate unique filename
        ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else 'jpg'
        unique_key = f"{folder}/{uuid.uuid4()}.{ext}"

        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=unique_key,
                Body=content,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"R2 upload error: {e}")
            raise ExternalServiceError("Image upload failed")

        logger.info(f"Uploaded to R2: {unique_key}")
        return {
            "url": f"{self.public_url}/{unique_key}",
            "key": unique_key
        }
