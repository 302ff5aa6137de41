from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    OFFICER = "officer"
    MINER = "miner"
