# ABOUTME: CloudFormation implementation of the stack API
# ABOUTME: Describes stacks and change sets, creates stacks and runs change sets

"""CloudFormation stack API."""

from botocore.exceptions import BotoCoreError, ClientError

from ..models import ChangeSetResult, StackDescription
from .common import translate_error


def _parameters(parameters: list[dict[str, str]]) -> list[dict[str, str]]:
    return [{"ParameterKey": p["ParameterKey"], "ParameterValue": p["ParameterValue"]} for p in parameters]


class CloudFormationStackAPI:
    """Stack API backed by a CloudFormation client."""

    def __init__(self, client):
        self.client = client

    def describe(self, name: str) -> StackDescription | None:
        try:
            response = self.client.describe_stacks(StackName=name)
        except ClientError as e:
            error = e.response.get("Error", {})
            if error.get("Code") == "ValidationError" and "does not exist" in error.get("Message", ""):
                return None
            raise translate_error(e, f"Unable to describe stack {name}") from e
        except BotoCoreError as e:
            raise translate_error(e, f"Unable to describe stack {name}") from e

        stacks = response.get("Stacks", [])
        if not stacks:
            return None

        stack = stacks[0]
        return StackDescription(
            name=stack["StackName"],
            status=stack["StackStatus"],
            stack_id=stack.get("StackId"),
            outputs={output["OutputKey"]: output.get("OutputValue", "") for output in stack.get("Outputs", [])},
            status_reason=stack.get("StackStatusReason"),
        )

    def create(self, name: str, template_url: str, parameters: list[dict[str, str]], capabilities: list[str]) -> str:
        try:
            response = self.client.create_stack(
                StackName=name,
                TemplateURL=template_url,
                Parameters=_parameters(parameters),
                Capabilities=capabilities,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to create stack {name}") from e
        return response["StackId"]

    def create_change_set(
        self,
        name: str,
        change_set_name: str,
        template_url: str,
        parameters: list[dict[str, str]],
        capabilities: list[str],
    ) -> str:
        try:
            response = self.client.create_change_set(
                StackName=name,
                ChangeSetName=change_set_name,
                TemplateURL=template_url,
                Parameters=_parameters(parameters),
                Capabilities=capabilities,
                ChangeSetType="UPDATE",
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to create change set for {name}") from e
        return response["Id"]

    def describe_change_set(self, name: str, change_set_name: str) -> ChangeSetResult:
        try:
            response = self.client.describe_change_set(StackName=name, ChangeSetName=change_set_name)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to describe change set {change_set_name}") from e

        return ChangeSetResult(
            status=response["Status"],
            changes=response.get("Changes", []),
            change_set_id=response.get("ChangeSetId"),
            stack_id=response.get("StackId"),
            reason=response.get("StatusReason"),
        )

    def execute_change_set(self, name: str, change_set_name: str) -> None:
        try:
            self.client.execute_change_set(StackName=name, ChangeSetName=change_set_name)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to execute change set {change_set_name}") from e

    def delete_change_set(self, name: str, change_set_name: str) -> None:
        try:
            self.client.delete_change_set(StackName=name, ChangeSetName=change_set_name)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"Unable to delete change set {change_set_name}") from e
