# ABOUTME: STS credential provider
# ABOUTME: Assumes roles for units, mappings and the master session

"""STS credentials."""

import logging
import uuid

from botocore.exceptions import BotoCoreError, ClientError

from ..models import CallerIdentity, SessionToken
from .common import translate_error

logger = logging.getLogger(__name__)


class StsCredentialProvider:
    """Credential provider backed by an STS client."""

    def __init__(self, client, duration_seconds: int = 3600):
        self.client = client
        self.duration_seconds = duration_seconds

    def assume(self, role_arn: str) -> SessionToken:
        session_name = str(uuid.uuid4())
        try:
            response = self.client.assume_role(
                RoleArn=role_arn, RoleSessionName=session_name, DurationSeconds=self.duration_seconds
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to assume role {role_arn}") from e

        credentials = response["Credentials"]
        logger.debug(f"Assumed {role_arn} as session {session_name}")
        return SessionToken(
            access_key=credentials["AccessKeyId"],
            secret_key=credentials["SecretAccessKey"],
            session_token=credentials.get("SessionToken"),
            expiry=credentials.get("Expiration"),
        )

    def identity(self) -> CallerIdentity:
        try:
            response = self.client.get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "Unable to read caller identity") from e
        return CallerIdentity(arn=response["Arn"], account=response.get("Account"))
