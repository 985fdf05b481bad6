from enum import Enum


class OwnerCategory(Enum):
    """Packages belong to a user or an organization, and the API paths
    differ between the two.  AUTHENTICATED means whoever owns the token.
    """

    USER = "users"
    ORG = "orgs"
    AUTHENTICATED = "user"
