"""
Domain: Signed-in identities and user profiles.

An Identity is what the identity provider hands back for the current session:
an opaque user id and an email. A UserProfile is the free-form contact data a
user keeps under their identity; the purchase flow never touches it.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Mapping

from .errors import ProfileValidationError

PROFILE_FIELDS = ("name", "gender", "age", "phone", "address", "dob")


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated user as reported by the identity provider."""

    uid: str
    email: str

    def __post_init__(self) -> None:
        if not self.uid:
            raise ValueError("uid must be non-empty")


@dataclass(frozen=True, slots=True)
class UserProfile:
    """
    Contact details stored in the `users` collection.

    All fields are optional strings. New saves keep `dob` in DD-MM-YYYY
    form; stored profiles are read as they are, since older clients saved
    it as free text.
    """

    name: str = ""
    gender: str = ""
    age: str = ""
    phone: str = ""
    address: str = ""
    dob: str = ""

    def validate(self) -> None:
        """
        Check the fields a user is about to save.

        Raises:
            ProfileValidationError: dob is set but not a DD-MM-YYYY date
        """

        if self.dob:
            _validate_dob(self.dob)

    @staticmethod
    def from_document(data: Mapping[str, Any]) -> "UserProfile":
        """Build a profile from a stored document, ignoring unknown fields."""

        return UserProfile(**{
            field: "" if data.get(field) is None else str(data[field])
            for field in PROFILE_FIELDS
        })

    def to_document(self) -> Dict[str, str]:
        return asdict(self)


def _validate_dob(value: str) -> None:
    try:
        datetime.strptime(value, "%d-%m-%Y")
    except ValueError:
        raise ProfileValidationError("dob must be a valid date in DD-MM-YYYY format") from None
