import json
import logging
import os
import time
from typing import Any, Dict, Optional

import boto3

logger = logging.getLogger(__name__)

class SecretsManager:
    """
    Reads credentials from AWS Secrets Manager and keeps them in a short
    TTL cache so rotated secrets are picked up without a restart.
    """

    def __init__(self, region_name: Optional[str] = None, cache_ttl: int = 300):
        """
        Args:
            region_name: AWS region, defaults to the AWS_REGION env variable
            cache_ttl: Seconds a fetched secret stays valid in the cache
        """
        self.region_name = region_name or os.environ.get("AWS_REGION", "us-east-1")
        self._client = None
        self._cache: Dict[str, str] = {}
        self._cache_timestamps: Dict[str, float] = {}
        self._cache_ttl = cache_ttl

    @property
    def client(self):
        """Lazy-loaded Secrets Manager client"""
        if self._client is None:
            session = boto3.session.Session()
            self._client = session.client(
                service_name="secretsmanager",
                region_name=self.region_name
            )
        return self._client

    def clear_cache(self):
        """Clear the secrets cache to force fresh retrieval."""
        logger.info("Clearing secrets cache")
        self._cache.clear()
        self._cache_timestamps.clear()

    def get_secret(self, secret_id: str) -> str:
        """
        Get a secret value, served from cache while it is younger than the TTL.

        If a fresh fetch fails and a stale value is cached, the stale value is
        returned and the failure is logged.
        """
        now = time.time()
        cached_at = self._cache_timestamps.get(secret_id)
        if cached_at is not None and now - cached_at < self._cache_ttl:
            logger.debug(f"Returning cached secret for {secret_id}")
            return self._cache[secret_id]

        logger.info(f"Fetching fresh secret for {secret_id}")
        try:
            response = self.client.get_secret_value(SecretId=secret_id)
        except Exception as e:
            if secret_id in self._cache:
                logger.warning(f"Fresh secret fetch failed for {secret_id}, using stale cache: {e}")
                return self._cache[secret_id]
            logger.error(f"Failed to get secret {secret_id}: {e}")
            raise

        value = response["SecretBinary"] if "SecretBinary" in response else response["SecretString"]
        self._cache[secret_id] = value
        self._cache_timestamps[secret_id] = now
        return value

    def get_json_secret(self, secret_id: str) -> Dict[str, Any]:
        return json.loads(self.get_secret(secret_id))

    def get_db_credentials(self) -> Dict[str, str]:
        """
        Database credentials secret. RDS-managed secrets carry username,
        password, host, port and dbname keys.
        """
        return self.get_json_secret(os.environ.get("DATABASE_SECRETS_NAME", "connectup/db-credentials"))
