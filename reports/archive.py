from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from feedbacks.errors import StoreError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchBucket", "NotFound"}


class ReportArchive(Protocol):
    def ensure_bucket(self) -> None:
        ...

    def put_report(self, key: str, text: str) -> None:
        ...

    def get_report(self, key: str) -> str:
        ...


def _error_code(exc: ClientError) -> Optional[str]:
    return exc.response.get("Error", {}).get("Code")


class S3ReportArchive:
    """Report destination: one S3 bucket holding weekly-report-<date>.txt objects."""

    def __init__(self, client: Any, bucket: str, region: Optional[str] = None) -> None:
        self.client = client
        self.bucket = bucket
        self.region = region

    def ensure_bucket(self) -> None:
        """
        Create the bucket when it does not exist.

        Never raises: a failed check or creation is logged and the caller goes
        on to attempt the upload anyway.
        """
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES:
                logger.warning("AVISO: não foi possível verificar o bucket %s: %s", self.bucket, e)
                return
        except BotoCoreError as e:
            logger.warning("AVISO: não foi possível verificar o bucket %s: %s", self.bucket, e)
            return

        logger.info("Bucket %s não existe; criando", self.bucket)
        params: Dict[str, Any] = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.client.create_bucket(**params)
        except (ClientError, BotoCoreError) as e:
            logger.warning("AVISO: falha ao criar o bucket %s: %s", self.bucket, e)

    def put_report(self, key: str, text: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=text.encode("utf-8"),
                ContentType="text/plain; charset=utf-8",
            )
        except ClientError as e:
            logger.error("Erro ao enviar relatório %s para %s: %s", key, self.bucket, e)
            raise StoreError(str(e), code=_error_code(e)) from e
        except BotoCoreError as e:
            logger.error("Erro ao enviar relatório %s para %s: %s", key, self.bucket, e)
            raise StoreError(str(e)) from e
        logger.info("Relatório salvo em s3://%s/%s", self.bucket, key)

    def get_report(self, key: str) -> str:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read().decode("utf-8")
        except ClientError as e:
            logger.error("Erro ao ler relatório %s de %s: %s", key, self.bucket, e)
            raise StoreError(str(e), code=_error_code(e)) from e
        except BotoCoreError as e:
            logger.error("Erro ao ler relatório %s de %s: %s", key, self.bucket, e)
            raise StoreError(str(e)) from e
