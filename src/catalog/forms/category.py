from catalog.models.category import Category
from catalog.validators.rules import Length, NotBlank, Unique

from .fields import Field, FormType

CATEGORY_TITLE_MIN_LENGTH = 3
CATEGORY_TITLE_MAX_LENGTH = 12

CATEGORY_FORM = FormType(
    name="category",
    model=Category,
    fields=(
        Field(
            "title",
            "string",
            rules=(
                NotBlank(),
                Length(
                    min=CATEGORY_TITLE_MIN_LENGTH,
                    max=CATEGORY_TITLE_MAX_LENGTH,
                    min_message="Title must be at least {{ limit }} characters long",
                    max_message="Title cannot be longer than {{ limit }} characters",
                ),
                Unique(),
            ),
        ),
        Field("eid", "integer"),
    ),
)
