from catalog.models.product import Product
from catalog.validators.rules import Length, NotBlank

from .category import CATEGORY_FORM
from .fields import Field, FormType


def build_product_form(title_min_length: int, title_max_length: int) -> FormType:
    """
    Build the product form. The title bounds are configuration
    (PRODUCT_TITLE_MIN_LENGTH / PRODUCT_TITLE_MAX_LENGTH).
    """
    return FormType(
        name="product",
        model=Product,
        fields=(
            Field(
                "title",
                "string",
                rules=(
                    NotBlank(),
                    Length(
                        min=title_min_length,
                        max=title_max_length,
                        min_message="Title must be at least {{ limit }} characters long",
                        max_message="Title cannot be longer than {{ limit }} characters",
                    ),
                ),
            ),
            Field("price", "number", rules=(NotBlank(),), precision=10, scale=2),
            Field("eid", "integer"),
            Field("categories", "collection", entry_form=CATEGORY_FORM),
        ),
    )
