from enum import Enum


class OrgRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


class AddMemberResult(str, Enum):
    ADDED = "added"
    ALREADY_MEMBER = "already_member"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
