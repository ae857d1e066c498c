import os
import io
import logging
from datetime import datetime, timezone
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, CLOUDFLARE_ACCOUNT_ID, R2_BUCKET

logger = logging.getLogger(__name__)

URL = f"https://{CLOUDFLARE_ACCOUNT_ID}.r2.cloudflarestorage.com"

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

s3 = boto3.client(
    service_name="s3",
    endpoint_url=URL,
    aws_access_key_id=AWS_ACCESS_KEY_ID,
    aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
    region_name="auto",
)


def upload_to_s3(data: bytes, content_type: str, original_name: str, folder: str):
    ext = ALLOWED_CONTENT_TYPES[content_type]
    base = os.path.splitext(os.path.basename(original_name or "image"))[0]

    ts = int(datetime.now(timezone.utc).timestamp())
    key = f"{folder}/{base}-{ts}.{ext}"

    s3.upload_fileobj(io.BytesIO(data), R2_BUCKET, key, ExtraArgs={"ContentType": content_type})

    return key


def generate_signed_url(key: str, expires_in=3600):
    try:
        return s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": R2_BUCKET, "Key": key},
                ExpiresIn=expires_in
            )
    except (BotoCoreError, ClientError) as e:
        logger.error("Error generating signed URL for %s: %s", key, e)
        return None


def delete_s3_object(key: str):
    try:
        s3.delete_object(Bucket=R2_BUCKET, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.error("Error deleting S3 object %s: %s", key, e)


def get_all_urls(keys: list):
    return [url for url in (generate_signed_url(key) for key in keys) if url]
