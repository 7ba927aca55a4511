from enum import Enum


class Role(str, Enum):
    diner = "diner"
    admin = "admin"
    franchisee = "franchisee"
