"""The authenticated caller handed to the marketplace core.

Identity and role are produced by the credential component (token
issuance lives outside this service); the core trusts them as given and
only decides which capability set the role unlocks.
"""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    CARRIER = "carrier"
    SHIPPER = "shipper"


@dataclass(frozen=True)
class Principal:
    id: str
    role: Role
