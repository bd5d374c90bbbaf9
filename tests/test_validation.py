"""
Unit tests for validation helpers.
"""

from typing import Optional

import pytest
from pydantic import BaseModel, Field

from developer_helper.errors import EntityValidationError, InvalidArgumentError
from developer_helper.validation import (
    ensure_valid,
    get_validation_errors,
    is_valid,
    is_valid_date,
    is_valid_email,
    is_valid_guid,
    is_valid_phone_number,
    is_valid_url,
    to_title_case,
    validate_entity,
    validate_property,
)


class Customer(BaseModel):
    name: str = Field(min_length=1)
    age: int = Field(ge=0, le=150)
    nickname: Optional[str] = None


class TestEntityValidation:
    """Test cases for entity validation."""

    def test_valid_entity(self):
        customer = Customer(name="Ada", age=36)
        assert validate_entity(customer) == []
        assert is_valid(customer)
        assert get_validation_errors(customer) == ""
        ensure_valid(customer)

    def test_constructed_entity_is_checked(self):
        customer = Customer.model_construct(name="", age=200)

        errors = validate_entity(customer)

        assert len(errors) == 2
        assert errors[0].startswith("name: ")
        assert errors[1].startswith("age: ")
        assert not is_valid(customer)
        assert get_validation_errors(customer) == ", ".join(errors)

    def test_mutated_entity_is_checked(self):
        customer = Customer(name="Ada", age=36)
        customer.age = -1
        assert not is_valid(customer)

    def test_mapping_with_model(self):
        assert is_valid({"name": "Ada", "age": 1}, Customer)
        assert validate_entity({"name": "Ada"}, Customer) == ["age: Field required"]

    def test_mapping_without_model_rejected(self):
        with pytest.raises(InvalidArgumentError):
            validate_entity({"name": "Ada"})

    def test_ensure_valid_raises(self):
        with pytest.raises(EntityValidationError) as exc_info:
            ensure_valid(Customer.model_construct(name="", age=1))

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert len(exc_info.value.details["errors"]) == 1

    def test_validate_property(self):
        assert validate_property(Customer, "age", 30) == []
        errors = validate_property(Customer, "age", 151)
        assert len(errors) == 1
        assert errors[0].startswith("age: ")
        assert validate_property(Customer, "nickname", None) == []

    def test_validate_unknown_property(self):
        with pytest.raises(InvalidArgumentError):
            validate_property(Customer, "email", "x")


class TestStringChecks:
    """Test cases for string format checks."""

    @pytest.mark.parametrize("email,expected", [
        ("jane.doe@company.org", True),
        ("jane@mail.company.org", True),
        ("jane@", False),
        ("jane doe@company.org", False),
        ("not-an-email", False),
        ("", False),
        (None, False),
    ])
    def test_email(self, email, expected):
        assert is_valid_email(email) is expected

    @pytest.mark.parametrize("number,expected", [
        ("555 123 4567", True),
        ("(555) 123-4567", True),
        ("5551234567", True),
        ("555 123 456", False),
        ("+90 555 123 4567", False),
        ("", False),
        (None, False),
    ])
    def test_phone_number(self, number, expected):
        assert is_valid_phone_number(number) is expected

    @pytest.mark.parametrize("url,expected", [
        ("https://api.company.org/items?id=1", True),
        ("ftp://files.company.org/a.txt", True),
        ("/relative/path", False),
        ("not a url", False),
        ("", False),
    ])
    def test_url(self, url, expected):
        assert is_valid_url(url) is expected

    @pytest.mark.parametrize("guid,expected", [
        ("12345678-1234-5678-1234-567812345678", True),
        ("12345678123456781234567812345678", True),
        ("12345678-1234-5678-1234", False),
        ("", False),
        (None, False),
    ])
    def test_guid(self, guid, expected):
        assert is_valid_guid(guid) is expected

    @pytest.mark.parametrize("value,expected", [
        ("2024-01-31", True),
        ("2024-01-31T10:15:00", True),
        ("2024-01-31T10:15:00Z", True),
        ("2024-02-30", False),
        ("yesterday", False),
        ("1700000000", False),
        ("", False),
        (None, False),
    ])
    def test_date(self, value, expected):
        assert is_valid_date(value) is expected

    @pytest.mark.parametrize("value,expected", [
        ("hello WORLD", "Hello World"),
        ("ALREADY Title", "Already Title"),
        ("", ""),
        (None, None),
    ])
    def test_title_case(self, value, expected):
        assert to_title_case(value) == expected
