# ABOUTME: SSM Parameter Store implementation of the parameter store capability
# ABOUTME: Missing parameters read as None so callers can apply fallbacks

"""SSM parameter store."""

from botocore.exceptions import BotoCoreError, ClientError

from ..models import ParameterType
from .common import translate_error


class SsmParameterStore:
    """Parameter store backed by an SSM client."""

    def __init__(self, client):
        self.client = client

    def get(self, name: str, decrypt: bool = True) -> str | None:
        try:
            response = self.client.get_parameter(Name=name, WithDecryption=decrypt)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ParameterNotFound":
                return None
            raise translate_error(e, f"Unable to read parameter {name}") from e
        except BotoCoreError as e:
            raise translate_error(e, f"Unable to read parameter {name}") from e
        return response["Parameter"]["Value"]

    def put(
        self,
        name: str,
        value: str,
        type: ParameterType = ParameterType.STRING,
        description: str = "",
        overwrite: bool = True,
    ) -> None:
        try:
            self.client.put_parameter(
                Name=name,
                Value=value,
                Type=type.value,
                Description=description,
                Overwrite=overwrite,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to write parameter {name}") from e
