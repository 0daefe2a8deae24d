from typing import Literal, Optional
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from hostel_tracker.core.exceptions import ValidationError


class ValidatedCreateIssue(BaseModel):
    title: str = Field(min_length=3, max_length=120)
    description: str = Field(min_length=10, max_length=2000)
    category: Literal[
        "plumbing",
        "electrical",
        "cleanliness",
        "internet",
        "furniture",
        "other",
    ]
    priority: Literal["low", "medium", "high", "emergency"]
    is_public: bool = True


class ValidatedCreateItem(BaseModel):
    item_name: str = Field(min_length=2, max_length=80)
    description: str = Field(min_length=5, max_length=1000)
    location: str = Field(min_length=2, max_length=120)
    status: Literal["lost", "found"]
    contact_info: Optional[str] = Field(default=None, max_length=120)


def _raise_validation_error(e: PydanticValidationError):
    raise ValidationError(
        "Invalid input",
        details={"errors": e.errors(include_url=False, include_context=False)},
    ) from e


def parse_bool(value) -> bool:
    # multipart forms send booleans as text
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def validate_create_issue_form(
    title: str,
    description: str,
    category: str,
    priority: str,
    is_public,
) -> ValidatedCreateIssue:
    try:
        return ValidatedCreateIssue(
            title=title.strip(),
            description=description.strip(),
            category=category,
            priority=priority,
            is_public=parse_bool(is_public),
        )
    except PydanticValidationError as e:
        _raise_validation_error(e)


def validate_create_item_form(
    item_name: str,
    description: str,
    location: str,
    status: str,
    contact_info: Optional[str] = None,
) -> ValidatedCreateItem:
    contact_info = contact_info.strip() if contact_info else None

    try:
        return ValidatedCreateItem(
            item_name=item_name.strip(),
            description=description.strip(),
            location=location.strip(),
            status=status,
            contact_info=contact_info or None,
        )
    except PydanticValidationError as e:
        _raise_validation_error(e)
