"""Pydantic models describing the Keystone v3 payloads we exchange."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class KeystoneBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


### token request ###


class DomainRef(KeystoneBaseModel):
    name: str


class UserCredentials(KeystoneBaseModel):
    name: str
    password: str
    domain: DomainRef


class PasswordMethod(KeystoneBaseModel):
    user: UserCredentials


class Identity(KeystoneBaseModel):
    methods: list[str] = Field(default_factory=lambda: ["password"])
    password: PasswordMethod


class ProjectRef(KeystoneBaseModel):
    name: str
    domain: DomainRef


class Scope(KeystoneBaseModel):
    project: ProjectRef


class Auth(KeystoneBaseModel):
    identity: Identity
    scope: Scope


class TokenRequest(KeystoneBaseModel):
    auth: Auth

    @classmethod
    def password(
        cls,
        *,
        user: str,
        password: str,
        project: str,
        user_domain: str,
        project_domain: str,
    ) -> TokenRequest:
        return cls(
            auth=Auth(
                identity=Identity(
                    password=PasswordMethod(
                        user=UserCredentials(
                            name=user,
                            password=password,
                            domain=DomainRef(name=user_domain),
                        )
                    )
                ),
                scope=Scope(project=ProjectRef(name=project, domain=DomainRef(name=project_domain))),
            )
        )


### endpoints ###


class EndpointPayload(KeystoneBaseModel):
    id: str
    service_id: str
    interface: str
    url: str
    name: str = ""
    region_id: str | None = None
    enabled: bool = True

    _normalize_region = field_validator("region_id", mode="before")(_blank_to_none)


class EndpointListResponse(KeystoneBaseModel):
    endpoints: list[EndpointPayload] = Field(default_factory=list)


class EndpointResponse(KeystoneBaseModel):
    endpoint: EndpointPayload


class EndpointCreate(KeystoneBaseModel):
    service_id: str
    interface: str
    url: str
    name: str | None = None
    region_id: str | None = None


class EndpointCreateRequest(KeystoneBaseModel):
    endpoint: EndpointCreate


class EndpointUpdate(KeystoneBaseModel):
    url: str


class EndpointUpdateRequest(KeystoneBaseModel):
    endpoint: EndpointUpdate


### errors ###


class ErrorDetail(KeystoneBaseModel):
    code: int
    message: str = ""
    title: str = ""


class ErrorResponse(KeystoneBaseModel):
    error: ErrorDetail
