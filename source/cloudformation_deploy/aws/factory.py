# ABOUTME: Builds boto3-backed capabilities bound to a set of credentials
# ABOUTME: A missing token falls back to the default provider chain

"""boto3 client factory."""

import boto3

from ..models import SessionToken
from .artifacts import S3ArtifactStore
from .credentials import StsCredentialProvider
from .parameters import SsmParameterStore
from .stacks import CloudFormationStackAPI


class Boto3ClientFactory:
    """Creates service adapters for one region."""

    def __init__(self, region: str):
        self.region = region

    def session(self, token: SessionToken | None = None) -> boto3.Session:
        if token is None:
            return boto3.Session(region_name=self.region)
        return boto3.Session(
            aws_access_key_id=token.access_key,
            aws_secret_access_key=token.secret_key,
            aws_session_token=token.session_token,
            region_name=self.region,
        )

    def credentials(self, token: SessionToken | None = None) -> StsCredentialProvider:
        return StsCredentialProvider(self.session(token).client("sts"))

    def stack_api(self, token: SessionToken | None) -> CloudFormationStackAPI:
        return CloudFormationStackAPI(self.session(token).client("cloudformation"))

    def parameter_store(self, token: SessionToken | None) -> SsmParameterStore:
        return SsmParameterStore(self.session(token).client("ssm"))

    def artifact_store(self, token: SessionToken | None) -> S3ArtifactStore:
        return S3ArtifactStore(self.session(token).client("s3"))
