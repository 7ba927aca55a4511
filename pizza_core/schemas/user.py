"""Principal and role assignment types returned by the repository."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class DinerRole(BaseModel):
    """Default role: may order and manage its own account."""

    role: Literal["diner"] = "diner"


class AdminRole(BaseModel):
    """Global administrator."""

    role: Literal["admin"] = "admin"


class FranchiseeRole(BaseModel):
    """Administrator of exactly one franchise."""

    role: Literal["franchisee"] = "franchisee"
    franchise_id: int = Field(..., ge=1, description="Franchise this assignment is scoped to")


# Tagged variant stored on a user; the absent-target case has no franchise_id at all.
RoleAssignment = Annotated[
    Union[DinerRole, AdminRole, FranchiseeRole],
    Field(discriminator="role"),
]


class FranchiseeGrant(BaseModel):
    """Franchisee role requested at user creation, naming the franchise instead of its id."""

    role: Literal["franchisee"] = "franchisee"
    franchise_name: str = Field(..., min_length=1, max_length=255)


RoleGrant = Union[DinerRole, AdminRole, FranchiseeRole, FranchiseeGrant]


class UserRecord(BaseModel):
    """User with resolved roles and no secret. Also used as the request principal."""

    id: int
    name: str
    email: str
    roles: list[RoleAssignment] = Field(default_factory=list)
