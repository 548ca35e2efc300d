import logging
from datetime import date
from io import BytesIO
from pathlib import Path

import boto3
import pandas as pd
from botocore.exceptions import BotoCoreError, ClientError

from fintrack import config

logger = logging.getLogger(__name__)


def get_s3_client():
    return boto3.client("s3", region_name=config.AWS_REGION)


def _local_dir(folder: str) -> Path:
    return Path(config.EXPORT_DIR) / folder


def save_file(file_name: str, data: bytes | pd.DataFrame, folder: str = "exports") -> bool:
    """
    Saves a file to either local disk or S3.
    """
    if isinstance(data, pd.DataFrame):
        buffer = BytesIO()
        data.to_csv(buffer, index=False)
        body = buffer.getvalue()
    else:
        body = data

    if config.S3_BUCKET:
        key = f"{folder}/{file_name}"
        try:
            get_s3_client().put_object(Bucket=config.S3_BUCKET, Key=key, Body=body)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload of %s failed: %s", key, e)
            return False
        return True

    local_path = _local_dir(folder) / file_name
    local_path.parent.mkdir(parents=True, exist_ok=True)
    local_path.write_bytes(body)
    return True


def load_file(file_name: str, folder: str = "exports") -> pd.DataFrame | None:
    """
    Loads a CSV file from either local disk or S3.
    """
    if config.S3_BUCKET:
        s3 = get_s3_client()
        key = f"{folder}/{file_name}"
        try:
            obj = s3.get_object(Bucket=config.S3_BUCKET, Key=key)
            return pd.read_csv(obj["Body"])
        except s3.exceptions.NoSuchKey:
            return None
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 download of %s failed: %s", key, e)
            return None

    local_path = _local_dir(folder) / file_name
    if local_path.exists():
        return pd.read_csv(local_path)
    return None


def list_files(folder: str = "exports") -> list[str]:
    """
    Lists files in a folder (Local or S3).
    """
    if config.S3_BUCKET:
        try:
            response = get_s3_client().list_objects_v2(Bucket=config.S3_BUCKET, Prefix=f"{folder}/")
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 listing of %s failed: %s", folder, e)
            return []
        return [obj["Key"].split("/")[-1] for obj in response.get("Contents", [])]

    local_path = _local_dir(folder)
    if local_path.exists():
        return sorted(f.name for f in local_path.glob("*") if f.is_file())
    return []


def export_transactions(df: pd.DataFrame, as_of: date) -> str:
    """Write the ledger frame as ``transactions_<date>.csv``; returns the name."""
    file_name = f"transactions_{as_of.isoformat()}.csv"
    out = df.copy()
    if not out.empty:
        out["Date"] = pd.to_datetime(out["Date"]).dt.strftime("%Y-%m-%d")
    if not save_file(file_name, out):
        raise OSError(f"Could not export {file_name}")
    logger.info("Exported %d transactions to %s", len(out), file_name)
    return file_name
