from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthorizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    authorization_token: Optional[str] = Field(
        default=None, alias="authorizationToken", max_length=4096
    )
    method_arn: str = Field(alias="methodArn", min_length=1, max_length=2048)


class PolicyStatement(BaseModel):
    Action: str
    Effect: Literal["Allow", "Deny"]
    Resource: str


class PolicyDocument(BaseModel):
    Version: str
    Statement: list[PolicyStatement]


class PolicyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    principal_id: str = Field(alias="principalId")
    policy_document: PolicyDocument = Field(alias="policyDocument")
