from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Wire names are camelCase (``authorId``, ``firstName``); Python code may
# use either form.
_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Tag ---

class TagCredentials(BaseModel):
    model_config = _camel

    title: str = Field(min_length=1, max_length=100)


class TagUpdate(BaseModel):
    model_config = _camel

    title: str | None = Field(None, max_length=100)


# --- Author ---

class AuthorCredentials(BaseModel):
    model_config = _camel

    title: str = Field(min_length=1, max_length=50)
    first_name: str = Field(min_length=1, max_length=150)
    last_name: str = Field(min_length=1, max_length=150)
    photo: str = Field(min_length=1)  # base64 / data URI display photo


class AuthorUpdate(BaseModel):
    model_config = _camel

    title: str | None = Field(None, max_length=50)
    first_name: str | None = Field(None, max_length=150)
    last_name: str | None = Field(None, max_length=150)
    photo: str | None = None


# --- Article ---

class ArticleCredentials(BaseModel):
    model_config = _camel

    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1)
    content: str = Field(min_length=1)
    author_id: str = Field(min_length=1)
    tags: list[str] = []
    caption: str = Field(min_length=1)  # base64 / data URI caption image


class ArticleUpdate(BaseModel):
    model_config = _camel

    title: str | None = Field(None, max_length=300)
    description: str | None = None
    content: str | None = None
    author_id: str | None = None
    tags: list[str] | None = None
    caption: str | None = None
