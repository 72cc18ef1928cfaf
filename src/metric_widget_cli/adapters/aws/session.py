# src/metric_widget_cli/adapters/aws/session.py
"""
Builds CloudWatch clients per account, assuming the account's role via STS when one is known.
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from metric_widget_cli.config import SESSION_NAME
from metric_widget_cli.core.exceptions import FetchError
from metric_widget_cli.core.models import AccountDescriptor

logger = logging.getLogger(__name__)


def describe_client_error(e: ClientError) -> str:
    error = e.response.get("Error", {})
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", "?")
    return f"{status} {error.get('Code', 'Unknown')}: {error.get('Message', str(e))}"


class CloudWatchClientFactory:
    """
    Callable that returns a CloudWatch client for (account, region).

    The base session defaults to boto3's credential chain. Pass an explicit
    session (or swap the whole factory) to control where credentials come from.
    """

    def __init__(
        self,
        role_name: Optional[str] = None,
        session_name: str = SESSION_NAME,
        session: Optional[boto3.Session] = None,
    ):
        self.role_name = role_name
        self.session_name = session_name
        self._session = session

    @property
    def session(self) -> boto3.Session:
        if self._session is None:
            self._session = boto3.Session()
        return self._session

    def __call__(self, account: AccountDescriptor, region: str):
        role_arn = account.resolve_role_arn(self.role_name)
        if not role_arn:
            logger.debug("Using ambient credentials for %s in %s", account.account_id, region)
            return self.session.client("cloudwatch", region_name=region)
        return self.assumed_session(role_arn, region).client("cloudwatch", region_name=region)

    def assumed_session(self, role_arn: str, region: str) -> boto3.Session:
        logger.debug("Assuming role %s in %s", role_arn, region)
        try:
            sts = self.session.client("sts", region_name=region)
            assumed = sts.assume_role(RoleArn=role_arn, RoleSessionName=self.session_name)
        except ClientError as e:
            raise FetchError(f"Failed to assume role {role_arn}: {describe_client_error(e)}") from e
        except BotoCoreError as e:
            raise FetchError(f"Failed to assume role {role_arn}: {e}") from e

        creds = assumed["Credentials"]
        return boto3.Session(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            region_name=region,
        )


def cloudwatch_client(region: str):
    """Plain CloudWatch client on the ambient credentials."""
    return boto3.client("cloudwatch", region_name=region)
