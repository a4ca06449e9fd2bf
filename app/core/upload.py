"""
app/core/upload.py

Image uploads to S3:
- Sniffs the real content type with filetype (client MIME is ignored)
- Enforces the 1MB image limit
- Stores objects as uploads/<subfolder>/<uuid><ext>
- Best-effort deletion of replaced images
"""

import logging
import uuid
from typing import Literal
from urllib.parse import urlparse

import boto3
import filetype
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile, status

from app.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

MAX_FILE_SIZE = 1 * 1024 * 1024

UploadFolder = Literal["profile_pictures", "vendor_logos", "menu_items"]

s3_client = None
if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
    try:
        s3_client = boto3.client(
            "s3",
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION,
        )
        logger.info("Boto3 S3 client initialized successfully.")
    except BotoCoreError as e:
        logger.error(f"Failed to initialize Boto3 S3 client: {e}")
        s3_client = None
else:
    logger.warning("AWS credentials not configured; image uploads are disabled.")


def _client_error_to_http(error_code: str | None) -> HTTPException:
    if error_code == "AccessDenied":
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="S3 upload failed: Access denied. Please check server credentials and bucket permissions.",
        )
    if error_code == "NoSuchBucket":
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"S3 upload failed: Bucket '{settings.AWS_S3_BUCKET}' not found. Check configuration.",
        )
    if error_code in ("InvalidAccessKeyId", "SignatureDoesNotMatch"):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="S3 upload failed: Invalid AWS credentials. Please check server configuration.",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"S3 upload failed due to a client error: {error_code}",
    )


async def read_validated_image(file: UploadFile) -> tuple[bytes, str]:
    """
    Read the upload and check its size and sniffed type.

    Returns:
        tuple[bytes, str]: The file contents and the detected MIME type.
    """
    contents = await file.read(MAX_FILE_SIZE + 1)
    if not contents:
        logger.warning(f"Upload rejected: Received an empty file '{file.filename}'.")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Received an empty file.")

    if len(contents) > MAX_FILE_SIZE:
        logger.warning(f"Upload rejected: File '{file.filename}' exceeds {MAX_FILE_SIZE} bytes.")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size exceeds the limit of {MAX_FILE_SIZE // 1024 // 1024} MB.",
        )

    kind = filetype.guess(contents[:261])
    detected_mime = kind.mime if kind else "unknown"
    if detected_mime not in ALLOWED_MIME_TYPES:
        logger.warning(
            f"Upload rejected: Invalid file type '{detected_mime}' for file '{file.filename}'."
        )
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: '{detected_mime}'. Allowed types: JPEG, PNG, GIF, WEBP.",
        )
    return contents, detected_mime


async def upload_file_to_s3(file: UploadFile, subfolder: UploadFolder) -> str:
    """
    Validates and uploads an image, returning its public HTTPS URL.

    Raises:
        HTTPException: If S3 is not configured, the image is invalid, or the upload fails.
    """
    if not s3_client:
        logger.error("S3 client is not available. Check AWS configuration and credentials.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="S3 service is not configured or unavailable. Cannot upload file.",
        )

    try:
        contents, detected_mime = await read_validated_image(file)
    finally:
        await file.close()

    s3_key = f"uploads/{subfolder}/{uuid.uuid4()}{ALLOWED_MIME_TYPES[detected_mime]}"
    logger.info(
        f"Uploading '{file.filename}' ({len(contents)} bytes, {detected_mime}) as '{s3_key}'"
    )

    try:
        s3_client.put_object(
            Bucket=settings.AWS_S3_BUCKET,
            Key=s3_key,
            Body=contents,
            ContentType=detected_mime,
        )
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code")
        logger.error(f"S3 ClientError uploading '{s3_key}': {error_code} - {e}")
        raise _client_error_to_http(error_code)
    except BotoCoreError as e:
        logger.error(f"Unexpected error during S3 upload for '{s3_key}': {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload file due to an unexpected server error.",
        )

    return f"https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_REGION}.amazonaws.com/{s3_key}"


def get_s3_key_from_url(s3_url: str | None) -> str | None:
    """Extracts the object key from a standard S3 HTTPS URL."""
    if not s3_url:
        return None
    parsed_url = urlparse(s3_url)
    if not parsed_url.netloc.endswith("amazonaws.com"):
        logger.warning(f"URL '{s3_url}' does not look like a standard S3 URL.")
        return None
    key = parsed_url.path.lstrip("/")
    return key or None


def delete_file_from_s3(s3_url: str | None) -> bool:
    """Remove a previously uploaded object. Failures are logged, never raised."""
    key = get_s3_key_from_url(s3_url)
    if not key or not s3_client:
        return False
    try:
        s3_client.delete_object(Bucket=settings.AWS_S3_BUCKET, Key=key)
        logger.info(f"Deleted S3 object '{key}'")
        return True
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Failed to delete S3 object '{key}': {e}")
        return False
