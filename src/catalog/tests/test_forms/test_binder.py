import logging
from decimal import Decimal

import pytest

from catalog.exceptions.request import BindingError, ExtraFieldsError
from catalog.forms.binder import Binder
from catalog.forms.fields import DEFAULT_EXTRA_FIELDS_MESSAGE
from catalog.forms.product import build_product_form
from catalog.models.category import Category
from catalog.models.product import Product

FORM = build_product_form(3, 12)


class InMemoryCategories:
    """Reference loader standing in for CategoryRepository."""

    def __init__(self, *categories: Category):
        self.rows = {c.id: c for c in categories}
        self.calls: list[int] = []

    async def get_by_id(self, entity_id):
        self.calls.append(entity_id)
        return self.rows.get(entity_id)


def existing_product() -> Product:
    return Product(id=1, title="Desk lamp", price=Decimal("19.90"), eid=3, categories=[])


@pytest.mark.asyncio
class TestBindScalars:

    async def test_full_bind_converts_every_field(self):
        """
        Behavior:
                - Bind a payload carrying every product field onto a fresh entity.
                - Strings are trimmed, numeric strings become Decimal/int.

        Importance:
                - The happy path every create request goes through.
        """
        result = await Binder().bind(FORM, {"title": "  Lamp ", "price": "12.50", "eid": "7"})

        product = result.entity
        assert isinstance(product, Product)
        assert product.title == "Lamp"
        assert product.price == Decimal("12.50")
        assert product.eid == 7
        assert product.categories == []
        assert result.warnings == []

    async def test_number_accepts_ints_and_floats(self):
        result = await Binder().bind(FORM, {"title": "Lamp", "price": 3})
        assert result.entity.price == Decimal(3)

        result = await Binder().bind(FORM, {"title": "Lamp", "price": 9.99})
        assert result.entity.price == Decimal("9.99")

    async def test_empty_strings_become_none_for_numbers(self):
        result = await Binder().bind(FORM, {"title": "Lamp", "price": "", "eid": " "})
        assert result.entity.price is None
        assert result.entity.eid is None

    @pytest.mark.parametrize(
        "payload, field",
        [
            ({"price": "abc"}, "price"),
            ({"price": True}, "price"),
            ({"price": [1]}, "price"),
            ({"price": "NaN"}, "price"),
            ({"price": float("inf")}, "price"),
            ({"title": 123}, "title"),
            ({"eid": 1.5}, "eid"),
            ({"eid": "12a"}, "eid"),
            ({"eid": False}, "eid"),
            ({"categories": "books"}, "categories"),
            ({"categories": [1]}, "categories[0]"),
            ({"categories": [{"title": 5}]}, "categories[0].title"),
        ],
    )
    async def test_type_mismatch_raises_binding_error(self, payload, field):
        """
        Behavior:
                - Values of the wrong shape are rejected instead of coerced.

        Importance:
                - A non-numeric price must surface as a 400 with the offending field,
                  never as a storage error or a silently wrong value.
        """
        with pytest.raises(BindingError) as exc_info:
            await Binder().bind(FORM, payload)

        assert exc_info.value.field == field
        assert exc_info.value.fields == [field]
        assert exc_info.value.http_status() == 400


    @pytest.mark.parametrize(
        "payload, field, reason",
        [
            ({"price": "1e400"}, "price", "This value should be less than 100000000 in absolute value."),
            ({"price": 100000000}, "price", "This value should be less than 100000000 in absolute value."),
            ({"price": "-1e8"}, "price", "This value should be less than 100000000 in absolute value."),
            ({"price": "9.999"}, "price", "This value should have at most 2 decimal places."),
            ({"price": "1e-400"}, "price", "This value should have at most 2 decimal places."),
            ({"eid": 2 ** 31}, "eid", "This value should be between -2147483648 and 2147483647."),
            ({"eid": "-2147483649"}, "eid", "This value should be between -2147483648 and 2147483647."),
            ({"categories": [{"eid": 1180591620717411303424}]}, "categories[0].eid",
             "This value should be between -2147483648 and 2147483647."),
        ],
    )
    async def test_values_the_columns_cannot_hold_are_rejected(self, payload, field, reason):
        """
        Behavior:
                - price must fit NUMERIC(10, 2); eid must fit a 32-bit INTEGER.

        Importance:
                - Out-of-range values are client errors. Stored, they would be rounded,
                  become infinite, or fail at flush as a 500.
        """
        with pytest.raises(BindingError) as exc_info:
            await Binder().bind(FORM, payload)

        assert exc_info.value.field == field
        assert exc_info.value.reason == reason

    @pytest.mark.parametrize(
        "payload, attribute, expected",
        [
            ({"price": "99999999.99"}, "price", Decimal("99999999.99")),
            ({"price": "9.990"}, "price", Decimal("9.99")),
            ({"price": "1E+2"}, "price", Decimal(100)),
            ({"eid": 2147483647}, "eid", 2147483647),
            ({"eid": "-2147483648"}, "eid", -2147483648),
        ],
    )
    async def test_boundary_values_are_accepted(self, payload, attribute, expected):
        result = await Binder().bind(FORM, {"title": "Lamp", **payload})
        assert getattr(result.entity, attribute) == expected

@pytest.mark.asyncio
class TestSubmitModes:

    async def test_partial_bind_leaves_absent_fields_untouched(self):
        """
        Behavior:
                - PATCH-style bind (partial=True) with only `price`.

        Importance:
                - Title, eid and categories of the stored product must survive.
        """
        product = existing_product()

        await Binder().bind(FORM, {"price": 25}, product, partial=True)

        assert product.price == Decimal(25)
        assert product.title == "Desk lamp"
        assert product.eid == 3

    async def test_full_bind_clears_absent_fields(self):
        product = existing_product()
        product.categories = [Category(id=4, title="lights")]

        await Binder().bind(FORM, {"price": 25}, product, partial=False)

        assert product.price == Decimal(25)
        assert product.title is None
        assert product.eid is None
        assert product.categories == []

    async def test_explicit_null_is_applied_in_partial_mode(self):
        product = existing_product()

        await Binder().bind(FORM, {"eid": None}, product, partial=True)

        assert product.eid is None
        assert product.title == "Desk lamp"

    async def test_null_collection_becomes_empty_list(self):
        result = await Binder().bind(FORM, {"title": "Lamp", "price": 1, "categories": None})
        assert result.entity.categories == []


@pytest.mark.asyncio
class TestExtraFields:

    async def test_unknown_keys_produce_a_warning(self, caplog):
        caplog.set_level(logging.INFO, logger="catalog.forms.binder")

        result = await Binder().bind(FORM, {"title": "Lamp", "price": 1, "color": "red", "id": 5})

        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.message == DEFAULT_EXTRA_FIELDS_MESSAGE
        # a product id in the body is not a field either
        assert warning.fields == ("color", "id")
        assert result.entity.id is None
        assert any(r.getMessage() == "form.bind.extra_fields" for r in caplog.records)

    async def test_unknown_keys_raise_when_fatal(self):
        with pytest.raises(ExtraFieldsError) as exc_info:
            await Binder(extra_fields_fatal=True).bind(FORM, {"title": "Lamp", "price": 1, "color": "red"})

        assert exc_info.value.fields == ["color"]
        assert exc_info.value.to_payload() == {
            "detail": DEFAULT_EXTRA_FIELDS_MESSAGE,
            "code": "invalid_field",
            "fields": ["color"],
        }

    async def test_unknown_keys_inside_categories_are_reported_with_their_path(self):
        result = await Binder().bind(
            FORM, {"title": "Lamp", "price": 1, "categories": [{"title": "books", "color": 1}]}
        )
        assert result.warnings[0].fields == ("categories[0].color",)


@pytest.mark.asyncio
class TestBindCategories:

    async def test_new_category_elements_become_new_entities(self):
        result = await Binder().bind(
            FORM, {"title": "Lamp", "price": 1, "categories": [{"title": " books ", "eid": 3}]}
        )

        [category] = result.entity.categories
        assert isinstance(category, Category)
        assert category.id is None
        assert category.title == "books"
        assert category.eid == 3

    async def test_id_reference_resolves_and_patches_existing_category(self):
        """
        Behavior:
                - `{"id": 5, "eid": 9}` resolves Category 5 through the loader and applies
                  only `eid` to it.

        Importance:
                - Linking an existing category must not clear its title.
        """
        books = Category(id=5, title="books", eid=1)
        loader = InMemoryCategories(books)

        result = await Binder({Category: loader}).bind(
            FORM, {"title": "Lamp", "price": 1, "categories": [{"id": 5, "eid": 9}]}
        )

        assert result.entity.categories == [books]
        assert books.title == "books"
        assert books.eid == 9
        assert loader.calls == [5]
        assert result.warnings == []

    async def test_unknown_reference_is_a_binding_error(self):
        binder = Binder({Category: InMemoryCategories()})

        with pytest.raises(BindingError) as exc_info:
            await binder.bind(FORM, {"title": "Lamp", "price": 1, "categories": [{"id": 99}]})

        assert exc_info.value.field == "categories[0].id"
        assert exc_info.value.reason == "Category with id 99 does not exist."

    async def test_same_reference_twice_is_a_binding_error(self):
        binder = Binder({Category: InMemoryCategories(Category(id=5, title="books"))})

        with pytest.raises(BindingError) as exc_info:
            await binder.bind(FORM, {"title": "Lamp", "price": 1, "categories": [{"id": 5}, {"id": "5"}]})

        assert exc_info.value.field == "categories[1].id"

    async def test_reference_without_loader_is_rejected(self):
        with pytest.raises(BindingError) as exc_info:
            await Binder().bind(FORM, {"title": "Lamp", "price": 1, "categories": [{"id": 5}]})

        assert exc_info.value.field == "categories[0].id"

    async def test_collection_keeps_payload_order(self):
        books = Category(id=5, title="books")
        result = await Binder({Category: InMemoryCategories(books)}).bind(
            FORM,
            {"title": "Lamp", "price": 1, "categories": [{"title": "games"}, {"id": 5}, {"title": "music"}]},
        )

        assert [c.title for c in result.entity.categories] == ["games", "books", "music"]
