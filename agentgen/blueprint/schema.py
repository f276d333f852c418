"""Blueprint schema — the typed configuration-of-record.

Per-field typing lives here; cross-field consistency (a disabled feature with
leftover settings, compose without docker, ...) is the job of
agentgen.blueprint.validator, so these models accept such states.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BLUEPRINT_VERSION = "1.0"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class BlueprintMeta(_Frozen):
    generator: str = "agentgen"
    generator_version: str
    generated_at: str = Field(..., description="ISO-8601 UTC timestamp")
    template_id: str
    template_version: str


class ProjectConfig(_Frozen):
    name: str
    description: str
    author: str | None = None
    license: str | None = None


class RuntimeConfig(_Frozen):
    version: str = Field(..., description="Version range, e.g. >=3.11,<4.0")
    manager: str


class StackConfig(_Frozen):
    language: str
    framework: str
    runtime: RuntimeConfig
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)


class DatabaseFeature(_Frozen):
    enabled: bool = False
    type: str = "none"
    orm: str = "none"
    migrations: bool = False
    async_: bool = Field(False, alias="async")


class AuthenticationFeature(_Frozen):
    enabled: bool = False
    method: str = "none"


class FeaturesConfig(_Frozen):
    database: DatabaseFeature = Field(default_factory=DatabaseFeature)
    authentication: AuthenticationFeature = Field(default_factory=AuthenticationFeature)
    cors: bool = False
    rate_limiting: bool = False
    openapi: bool = True
    health_check: bool = True


class ToolConfig(_Frozen):
    tool: str
    config_file: str


class TestingConfig(_Frozen):
    framework: str
    coverage: bool = False
    coverage_threshold: float | None = 80


class ToolingConfig(_Frozen):
    linter: ToolConfig
    formatter: ToolConfig
    type_checker: ToolConfig
    testing: TestingConfig


class DockerConfig(_Frozen):
    enabled: bool = False
    compose: bool = False
    registry: str = "docker.io"


class CIConfig(_Frozen):
    provider: str = "none"
    checks: list[str] = Field(default_factory=list)


class DeploymentConfig(_Frozen):
    target: str = "docker"


class InfrastructureConfig(_Frozen):
    docker: DockerConfig = Field(default_factory=DockerConfig)
    ci: CIConfig = Field(default_factory=CIConfig)
    deployment: DeploymentConfig = Field(default_factory=DeploymentConfig)


class AgentConfig(_Frozen):
    """How a coding agent working in the generated project is expected to behave."""

    strictness: Literal["strict", "balanced", "permissive"] = "balanced"
    test_requirements: Literal["always", "on-request", "never"] = "on-request"
    allowed_operations: list[str] = Field(default_factory=list)
    prohibited_operations: list[str] = Field(default_factory=list)
    custom_rules: list[str] = Field(default_factory=list)


class PathsConfig(_Frozen):
    source_dir: str = "src"
    test_dir: str = "tests"


class Blueprint(_Frozen):
    version: str = BLUEPRINT_VERSION
    meta: BlueprintMeta
    project: ProjectConfig
    stack: StackConfig
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    tooling: ToolingConfig
    infrastructure: InfrastructureConfig = Field(default_factory=InfrastructureConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
