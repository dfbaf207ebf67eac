import os
import logging
from typing import Optional, Dict, Any, List
import json
import uuid

import boto3
from botocore.exceptions import ClientError, NoCredentialsError, PartialCredentialsError

from . import config as sm_config # sm_config to avoid clash if this module also has a config object
from .exceptions import StorageManagerError, InvalidDocumentKeyError, S3ConfigError, S3OperationError, LocalStorageError

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".json"


class StorageManager:
    """Manages keyed JSON documents on S3 or the local filesystem.

    The manager can be configured to use AWS S3 as the primary backend or
    a local filesystem path. Configuration is resolved from constructor
    parameters, environment variables, or default values.

    Documents are addressed by slash-separated keys (e.g. `recorder/data`,
    `pending/<origin>`). Besides plain read/write/delete, `take_document`
    reads and removes a document so that at most one caller receives it.
    """

    def __init__(
        self,
        s3_bucket_name: Optional[str] = None,
        s3_region_name: Optional[str] = None,
        local_base_path: Optional[str] = None,
        prefer_s3: bool = True # If S3 is configured, prefer it. If False, or S3 not configured, use local.
    ):
        """
        Initializes the StorageManager.

        Configuration for S3 bucket, region, and local path are resolved by:
        1. Direct parameters to constructor.
        2. Environment variables (see `config.py` for details).
        3. Default values (see `config.py` for details).

        Args:
            s3_bucket_name: Override for S3 bucket name. If not provided,
                            resolved from `STORAGE_S3_BUCKET` or defaults to None.
            s3_region_name: Override for S3 region name. If not provided,
                            resolved from `STORAGE_S3_REGION` or `DEFAULT_S3_REGION`.
            local_base_path: Override for local storage base path. If not provided,
                             resolved from `STORAGE_LOCAL_BASE_PATH` or `DEFAULT_LOCAL_BASE_PATH`.
            prefer_s3: If True (default) and S3 is configured, S3 will be the
                       primary storage. Otherwise local storage is used.
        """
        self.s3_bucket_name = sm_config.get_s3_bucket_name(bucket_override=s3_bucket_name)
        self.s3_region_name = sm_config.get_s3_region(region_override=s3_region_name)
        self.local_base_path = sm_config.get_local_base_path(path_override=local_base_path)

        self._s3_client = None
        self.use_s3 = False

        if prefer_s3 and self.s3_bucket_name:
            try:
                self._get_s3_client()
                self.use_s3 = True
                logger.info(
                    f"StorageManager initialized to use S3. Bucket: {self.s3_bucket_name}, "
                    f"Region: {self.s3_region_name}. Local fallback: {self.local_base_path}"
                )
            except S3ConfigError as e:
                logger.warning(
                    f"S3 preference was True, but S3 client initialization failed: {e}. "
                    f"Falling back to local storage at {self.local_base_path}."
                )
                self.use_s3 = False
        else:
            if not self.s3_bucket_name and prefer_s3:
                logger.info("S3 bucket name not configured. Using local storage.")
            elif not prefer_s3:
                logger.info("prefer_s3 is False. Using local storage.")
            self.use_s3 = False
            logger.info(f"StorageManager initialized to use Local Storage at {self.local_base_path}.")

    def _get_s3_client(self):
        """Initializes and returns the Boto3 S3 client, cached after the first success.

        Raises:
            S3ConfigError: If the bucket name is not configured, AWS credentials
                           are missing or incomplete, or client creation fails.
        """
        if self._s3_client is None:
            if not self.s3_bucket_name:
                raise S3ConfigError("S3 bucket name is not configured.")
            try:
                # Credentials come from boto3's standard chain (env vars, shared files, instance role).
                self._s3_client = boto3.client("s3", region_name=self.s3_region_name)
                logger.debug(f"S3 client initialized for region {self.s3_region_name}")
            except (NoCredentialsError, PartialCredentialsError) as e:
                logger.error(f"AWS credentials not found or incomplete for S3: {e}", exc_info=True)
                raise S3ConfigError(f"AWS credentials not found or incomplete: {e}") from e
            except ClientError as e:
                logger.error(f"Failed to initialize S3 client: {e}", exc_info=True)
                raise S3ConfigError(f"Failed to initialize S3 client: {e}") from e
            except Exception as e:
                logger.error(f"An unexpected error occurred during S3 client initialization: {e}", exc_info=True)
                raise S3ConfigError(f"Unexpected error initializing S3 client: {e}") from e
        return self._s3_client

    @staticmethod
    def _validate_key(key: str) -> List[str]:
        parts = key.split("/")
        if not key or any(part in ("", ".", "..") for part in parts):
            raise InvalidDocumentKeyError(key)
        return parts

    def _get_s3_key(self, key: str) -> str:
        """Constructs the S3 object key for a document key (e.g. 'recorder/data.json')."""
        self._validate_key(key)
        return f"{key}{DOCUMENT_SUFFIX}"

    def _get_local_path(self, key: str) -> str:
        """Constructs the local file path for a document key, creating parent directories."""
        parts = self._validate_key(key)
        path = os.path.join(self.local_base_path, *parts) + DOCUMENT_SUFFIX
        os.makedirs(os.path.dirname(path), exist_ok=True)
        return path

    def _upload_to_s3(self, data: str, s3_key: str, content_type: str = "application/json") -> str:
        """Uploads a UTF-8 string to S3 and returns the s3:// URL.

        Raises:
            S3ConfigError: If the S3 client cannot be initialized.
            S3OperationError: If the S3 `put_object` operation fails.
        """
        s3_client = self._get_s3_client()
        try:
            s3_client.put_object(
                Bucket=self.s3_bucket_name,
                Key=s3_key,
                Body=data.encode("utf-8"),
                ContentType=content_type,
            )
            s3_url = f"s3://{self.s3_bucket_name}/{s3_key}"
            logger.debug(f"Successfully uploaded data to {s3_url}")
            return s3_url
        except ClientError as e:
            logger.error(f"S3 put_object failed for key {s3_key}: {e}", exc_info=True)
            raise S3OperationError(f"S3 upload failed for key {s3_key}", operation="upload", original_exception=e) from e

    def _write_to_local(self, data: str, local_path: str) -> str:
        """Writes a UTF-8 string to a local file. The file is replaced atomically.

        Raises:
            LocalStorageError: If an OSError occurs during writing.
        """
        tmp_path = f"{local_path}.{uuid.uuid4().hex}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp_path, local_path)
            abs_path = os.path.abspath(local_path)
            logger.debug(f"Successfully wrote data to local file: {abs_path}")
            return abs_path
        except OSError as e:
            logger.error(f"OSError writing to local file {local_path}: {e}", exc_info=True)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise LocalStorageError(f"Failed to write to local file {local_path}: {e}") from e

    def _download_from_s3(self, s3_key: str) -> Optional[bytes]:
        """Downloads an object from S3. Returns None when the key does not exist.

        Raises:
            S3ConfigError: If the S3 client cannot be initialized.
            S3OperationError: If the S3 `get_object` operation fails for another reason.
        """
        s3_client = self._get_s3_client()
        try:
            response = s3_client.get_object(Bucket=self.s3_bucket_name, Key=s3_key)
            data_bytes = response["Body"].read()
            logger.debug(f"Successfully downloaded data from s3://{self.s3_bucket_name}/{s3_key}")
            return data_bytes
        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                logger.debug(f"S3 object not found at key {s3_key}")
                return None
            logger.error(f"S3 get_object failed for key {s3_key}: {e}", exc_info=True)
            raise S3OperationError(f"S3 download failed for key {s3_key}", operation="download", original_exception=e) from e

    def _read_from_local(self, local_path: str) -> Optional[bytes]:
        """Reads a local file. Returns None when it does not exist.

        Raises:
            LocalStorageError: If an OSError other than a missing file occurs.
        """
        try:
            with open(local_path, "rb") as f:
                data_bytes = f.read()
            logger.debug(f"Successfully read data from local file: {local_path}")
            return data_bytes
        except FileNotFoundError:
            logger.debug(f"Local file not found: {local_path}")
            return None
        except OSError as e:
            logger.error(f"OSError reading from local file {local_path}: {e}", exc_info=True)
            raise LocalStorageError(f"Failed to read from local file {local_path}: {e}") from e

    def _delete_from_s3(self, s3_key: str) -> None:
        s3_client = self._get_s3_client()
        try:
            s3_client.delete_object(Bucket=self.s3_bucket_name, Key=s3_key)
            logger.debug(f"Deleted s3://{self.s3_bucket_name}/{s3_key}")
        except ClientError as e:
            logger.error(f"S3 delete_object failed for key {s3_key}: {e}", exc_info=True)
            raise S3OperationError(f"S3 delete failed for key {s3_key}", operation="delete", original_exception=e) from e

    def _delete_local(self, local_path: str) -> bool:
        try:
            os.remove(local_path)
            logger.debug(f"Deleted local file: {local_path}")
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"OSError deleting local file {local_path}: {e}", exc_info=True)
            raise LocalStorageError(f"Failed to delete local file {local_path}: {e}") from e

    @staticmethod
    def _decode(raw: bytes, location: str) -> Dict[str, Any]:
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Stored document at {location} is not valid JSON: {e}", exc_info=True)
            raise StorageManagerError(f"Stored document at {location} is not valid JSON: {e}") from e

    def get_storage_info(self) -> Dict[str, Any]:
        """Returns a dictionary with current storage configuration information.

        Returns:
            A dictionary containing:
                - 'uses_s3' (bool): True if S3 is the active backend.
                - 's3_bucket' (Optional[str]): S3 bucket name if using S3, else None.
                - 's3_region' (Optional[str]): S3 region name if using S3, else None.
                - 'local_base_path' (str): The absolute base path for local storage.
                - 'effective_storage_type' (str): 'S3' or 'Local'.
        """
        return {
            "uses_s3": self.use_s3,
            "s3_bucket": self.s3_bucket_name if self.use_s3 else None,
            "s3_region": self.s3_region_name if self.use_s3 else None,
            "local_base_path": self.local_base_path,
            "effective_storage_type": "S3" if self.use_s3 else "Local"
        }

    async def write_document(self, key: str, document: Dict[str, Any]) -> str:
        """
        Stores `document` as JSON under `key`, replacing any previous version.

        Returns:
            The S3 URL or absolute local path of the stored document.

        Raises:
            S3OperationError: If the S3 upload fails.
            LocalStorageError: If the local write fails.
            StorageManagerError: If the document cannot be serialized.
        """
        try:
            payload = json.dumps(document, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageManagerError(f"Document for key {key} is not JSON serializable: {e}") from e

        if self.use_s3:
            location = self._upload_to_s3(payload, self._get_s3_key(key))
        else:
            location = self._write_to_local(payload, self._get_local_path(key))
        logger.debug(f"Stored document {key} at {location}")
        return location

    async def read_document(self, key: str) -> Optional[Dict[str, Any]]:
        """Returns the document stored under `key`, or None if there is none."""
        if self.use_s3:
            s3_key = self._get_s3_key(key)
            raw = self._download_from_s3(s3_key)
            location = f"s3://{self.s3_bucket_name}/{s3_key}"
        else:
            location = self._get_local_path(key)
            raw = self._read_from_local(location)
        if raw is None:
            return None
        return self._decode(raw, location)

    async def delete_document(self, key: str) -> None:
        """Removes the document under `key`. Missing documents are ignored."""
        if self.use_s3:
            self._delete_from_s3(self._get_s3_key(key))
        else:
            self._delete_local(self._get_local_path(key))

    async def take_document(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Reads and removes the document under `key`.

        Locally the file is first claimed by renaming it, so when several
        callers race only one of them gets the document. On S3 the object is
        read and then deleted.
        """
        if self.use_s3:
            s3_key = self._get_s3_key(key)
            raw = self._download_from_s3(s3_key)
            if raw is None:
                return None
            self._delete_from_s3(s3_key)
            return self._decode(raw, f"s3://{self.s3_bucket_name}/{s3_key}")

        local_path = self._get_local_path(key)
        claimed_path = f"{local_path}.{uuid.uuid4().hex}.claimed"
        try:
            os.replace(local_path, claimed_path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Could not claim local document {local_path}: {e}", exc_info=True)
            raise LocalStorageError(f"Failed to claim local document {local_path}: {e}") from e
        try:
            raw = self._read_from_local(claimed_path)
        finally:
            self._delete_local(claimed_path)
        if raw is None:
            return None
        return self._decode(raw, local_path)
