"""Franchise and store types returned by the repository."""

from decimal import Decimal

from pydantic import BaseModel, Field


class FranchiseAdmin(BaseModel):
    """User holding a franchisee role on the franchise."""

    id: int
    name: str
    email: str


class StoreSummary(BaseModel):
    """
    Store attached to a franchise listing.

    total_revenue is only filled for hydrated franchises (admin or owner views).
    """

    id: int
    name: str
    total_revenue: Decimal | None = None


class Franchise(BaseModel):
    id: int
    name: str
    admins: list[FranchiseAdmin] | None = None
    stores: list[StoreSummary] = Field(default_factory=list)


class Store(BaseModel):
    id: int
    franchise_id: int
    name: str
