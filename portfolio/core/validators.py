"""
Form validators.

Pure checks, one per form: each takes raw form data and returns ``Ok`` with a
typed, normalized draft or a validation ``Failure`` listing (field, message)
pairs in field order. No I/O.
"""

from typing import Annotated, Any, List, Mapping, Optional, Type, TypeVar

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from portfolio.core.results import FieldError, Ok, Result, validation_failure
from portfolio.kernel.models import DEFAULT_PROJECT_ICON, DEFAULT_READ_TIME, ArticleCategory

_URL = TypeAdapter(AnyUrl)

DraftT = TypeVar("DraftT", bound=BaseModel)


def parse_technologies(value: Any) -> List[str]:
    """Comma-separated text or a list into trimmed, non-empty tags, in order."""
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else list(value)
    return [str(part).strip() for part in parts if str(part).strip()]


def _url_or_empty(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    try:
        _URL.validate_python(value)
    except ValidationError as exc:
        raise ValueError("Invalid URL") from exc
    return value


class AuthCredentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class ProjectDraft(BaseModel):
    """Normalized project form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    icon: str = Field(DEFAULT_PROJECT_ICON, min_length=1)
    technologies: List[str]
    demo_url: Optional[str] = None
    repo_url: Optional[str] = None
    sort_order: int = Field(0, ge=0)
    is_published: bool = True

    @field_validator("technologies", mode="before")
    @classmethod
    def split_technologies(cls, v: Any) -> List[str]:
        return parse_technologies(v)

    @field_validator("technologies")
    @classmethod
    def require_technology(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("Add at least one technology")
        return v

    @field_validator("demo_url", "repo_url")
    @classmethod
    def check_url(cls, v: Optional[str]) -> Optional[str]:
        return _url_or_empty(v)


class ArticleDraft(BaseModel):
    """Normalized article form."""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=200)
    excerpt: str = Field(..., min_length=1, max_length=500)
    content: Optional[str] = None
    category: ArticleCategory = ArticleCategory.GENERAL.value
    read_time: str = Field(DEFAULT_READ_TIME, min_length=1)
    url: Optional[str] = None
    sort_order: int = Field(0, ge=0)
    is_published: bool = True

    @field_validator("content")
    @classmethod
    def empty_content_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("url")
    @classmethod
    def check_url(cls, v: Optional[str]) -> Optional[str]:
        return _url_or_empty(v)


class CommentDraft(BaseModel):
    author_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
    content: Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=1000)]


def _field_errors(exc: ValidationError) -> List[FieldError]:
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__root__"
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field=field, message=message))
    return errors


def _validate(model: Type[DraftT], data: Mapping[str, Any]) -> Result[DraftT]:
    try:
        return Ok(model.model_validate(dict(data)))
    except ValidationError as exc:
        return validation_failure(_field_errors(exc))


def validate_auth(data: Mapping[str, Any]) -> Result[AuthCredentials]:
    return _validate(AuthCredentials, data)


def validate_project(data: Mapping[str, Any]) -> Result[ProjectDraft]:
    """Technologies may be given as comma-separated text or as a list."""
    return _validate(ProjectDraft, data)


def validate_article(data: Mapping[str, Any]) -> Result[ArticleDraft]:
    return _validate(ArticleDraft, data)


def validate_comment(data: Mapping[str, Any]) -> Result[CommentDraft]:
    """Name and content are trimmed before their lengths are checked."""
    return _validate(CommentDraft, data)
