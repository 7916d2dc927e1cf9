import os
import logging
from typing import Optional
import boto3


logger = logging.getLogger(__name__)

BUCKET = os.getenv("R2_BUCKET")
URL = f"https://{os.getenv('CLOUDFLARE_ACCOUNT_ID')}.r2.cloudflarestorage.com"

s3 = boto3.client(
    service_name="s3",
    endpoint_url=URL,
    aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
    aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
    region_name="auto",
)


def generate_signed_url(key: Optional[str], expires_in=3600) -> Optional[str]:
    """Presigned GET for a stored proof image; None when there is no key or signing fails."""
    if not key:
        return None

    try:
        return s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": BUCKET, "Key": key},
                ExpiresIn=expires_in
            )
    except Exception:
        logger.warning("Could not sign URL for %s", key, exc_info=True)
        return None
