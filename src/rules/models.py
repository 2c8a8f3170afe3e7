from pydantic import BaseModel, Field, model_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class RbacRules(BaseModel):
    roles: dict[str, list[str]]
    public_permissions: list[str] = Field(default_factory=list)


class OnboardingRules(BaseModel):
    founded_year_min: int = 1800
    pending_page_size_max: int = 100

    @model_validator(mode="after")
    def _check_ranges(self) -> "OnboardingRules":
        if self.founded_year_min < 1:
            raise ValueError("founded_year_min must be positive")
        if self.pending_page_size_max < 1:
            raise ValueError("pending_page_size_max must be at least 1")
        return self


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    rbac: RbacRules
    onboarding: OnboardingRules = Field(default_factory=OnboardingRules)
    ops: OpsRules = Field(default_factory=OpsRules)
