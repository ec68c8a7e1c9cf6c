"""
Centralized Pydantic Input Validation Layer

Validates user input before anything is forwarded to the identity provider
or the character store.

Validation Categories:
1. Registration - required fields, password length, name length, email format
2. Login - required fields
3. Character profile - gender, height, weight, goal
"""

import logging
import re
from typing import Optional, Literal, Type, TypeVar, Tuple, Any
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
MIN_HEIGHT_CM, MAX_HEIGHT_CM = 50, 300
MIN_WEIGHT_KG, MAX_WEIGHT_KG = 20, 500
MAX_GOAL_LENGTH = 200

ModelT = TypeVar("ModelT", bound=BaseModel)


def is_valid_email(email: str) -> bool:
    """Basic email shape check (something@domain.tld, no whitespace)"""
    return bool(EMAIL_PATTERN.match(email.strip()))


# ============================================================================
# AUTH INPUT VALIDATION
# ============================================================================

class RegistrationInput(BaseModel):
    """
    Validate sign-up form input

    Rules are checked in order and the first failure wins:
    - email, password and name must all be non-empty
    - password: at least 6 characters
    - name: at least 2 characters after trimming
    - email: must look like name@domain.tld

    Email is normalized (trimmed, lower-cased); name is trimmed.
    """
    email: str = ""
    password: str = ""
    name: str = ""

    @model_validator(mode='after')
    def check_form(self) -> 'RegistrationInput':
        if not self.email or not self.password or not self.name:
            raise ValueError("All fields are required")

        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        if len(self.name.strip()) < MIN_NAME_LENGTH:
            raise ValueError(
                f"Name must be at least {MIN_NAME_LENGTH} characters long"
            )

        if not is_valid_email(self.email):
            raise ValueError("Please enter a valid email address")

        self.email = self.email.strip().lower()
        self.name = self.name.strip()
        return self


class LoginInput(BaseModel):
    """Validate sign-in form input"""
    email: str = ""
    password: str = ""

    @model_validator(mode='after')
    def check_form(self) -> 'LoginInput':
        if not self.email or not self.password:
            raise ValueError("Email and password are required")

        self.email = self.email.strip().lower()
        return self


# ============================================================================
# CHARACTER PROFILE VALIDATION
# ============================================================================

class ProfileInput(BaseModel):
    """
    Validate onboarding / profile edits

    Constraints:
    - gender: male or female
    - height: 50-300 cm
    - weight: 20-500 kg
    - goal: up to 200 characters, trimmed
    """
    gender: Literal["male", "female"] = "male"
    height: Optional[int] = Field(default=None, ge=MIN_HEIGHT_CM, le=MAX_HEIGHT_CM, description="Height in cm")
    weight: Optional[int] = Field(default=None, ge=MIN_WEIGHT_KG, le=MAX_WEIGHT_KG, description="Weight in kg")
    goal: Optional[str] = Field(default=None, max_length=MAX_GOAL_LENGTH, description="Fitness goal")

    @field_validator('goal')
    @classmethod
    def trim_goal(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        trimmed = v.strip()
        return trimmed or None


# ============================================================================
# HELPERS
# ============================================================================

def format_validation_error(error: PydanticValidationError) -> str:
    """
    Turn a pydantic ValidationError (or FastAPI's RequestValidationError,
    which has the same errors() shape) into a single user-facing sentence

    Pydantic prefixes custom messages with "Value error, "; that prefix is
    dropped so the message reads like the form error it is.
    """
    errors = error.errors()
    if not errors:
        return "Invalid input"

    first = errors[0]
    message = str(first.get("msg", "Invalid input"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]

    location = [str(part) for part in first.get("loc", ()) if part != "__root__"]
    if location and first.get("type") != "value_error":
        return f"{location[-1]}: {message}"
    return message


def safe_validate(model: Type[ModelT], **data: Any) -> Tuple[Optional[ModelT], Optional[str]]:
    """
    Validate data against a model without raising

    Returns:
        (instance, None) on success, (None, error message) on failure
    """
    try:
        return model(**data), None
    except PydanticValidationError as e:
        message = format_validation_error(e)
        logger.debug(f"Validation failed for {model.__name__}: {message}")
        return None, message
