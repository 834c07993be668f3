import logging
import uuid
from datetime import datetime
from typing import Optional

import boto3
from botocore.exceptions import ClientError
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from services.errors import StoreUnavailable, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
}


class S3Service:
    def __init__(self, bucket_name: str, client: boto3.client, public_base_url: Optional[str] = None):
        """
        Initialize the S3 service with bucket name and an optional public URL prefix
        """
        self.bucket_name = bucket_name
        self.s3 = client
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    async def upload_image(self, file: UploadFile, folder: str, owner_id: str = "", max_size_mb: int = 10) -> str:
        """
        Upload an image to S3

        Args:
            file: The uploaded image
            folder: Key prefix, e.g. "users" or "posts/<user id>"
            owner_id: Stored as object metadata when known
            max_size_mb: Maximum file size in MB

        Returns:
            A reference to the stored image: a public URL when a base URL is
            configured, otherwise the object key

        Raises:
            ValidationError: If the file is not a JPEG, PNG or GIF or is too large
            StoreUnavailable: If the upload fails
        """
        extension = ALLOWED_IMAGE_TYPES.get(file.content_type)
        if extension is None:
            raise ValidationError("Only JPEG, PNG and GIF images are allowed")

        file_content = await file.read()
        if len(file_content) > max_size_mb * 1024 * 1024:
            raise ValidationError(f"File size exceeds {max_size_mb}MB limit")

        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        key = f"{folder}/{timestamp}-{uuid.uuid4()}.{extension}"

        try:
            # boto3 is blocking
            await run_in_threadpool(
                self.s3.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=file.content_type,
                Metadata={"owner_id": owner_id} if owner_id else {}
            )
        except ClientError as e:
            logger.error(f"S3 upload error: {e}")
            raise StoreUnavailable("Failed to upload image") from e

        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return key
