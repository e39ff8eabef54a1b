"""
Altegio Onboarding — Row Parsing and Schema Validation Tests
"""

import os
import sys
import unittest

_base = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _base)

from onboarding.errors import ValidationError
from onboarding.rows import parse_csv, parse_rows
from onboarding.schemas import (
    SCHEMA_REGISTRY,
    BatchItem,
    CategoryItem,
    ClientItem,
    ServiceItem,
    StaffItem,
    validate_rows,
)


class TestParseRows(unittest.TestCase):

    def test_csv_with_header(self):
        rows = parse_csv("name,phone,email\nJohn,+1234567890,john@test.com\nJane,+0987654321,")
        self.assertEqual(rows, [
            {"name": "John", "phone": "+1234567890", "email": "john@test.com"},
            {"name": "Jane", "phone": "+0987654321", "email": ""},
        ])

    def test_csv_bom_and_blank_lines(self):
        rows = parse_csv("\ufeffname, phone\n\nJohn, +1\n,\n")
        self.assertEqual(rows, [{"name": "John", "phone": "+1"}])

    def test_csv_quoted_commas(self):
        rows = parse_csv('title,comment\nCut,"short, layered"')
        self.assertEqual(rows[0]["comment"], "short, layered")

    def test_json_array(self):
        rows = parse_rows('[{"name": "A"}, {"name": "B"}]')
        self.assertEqual([r["name"] for r in rows], ["A", "B"])

    def test_json_single_object(self):
        self.assertEqual(parse_rows('{"name": "A"}'), [{"name": "A"}])

    def test_list_passthrough(self):
        self.assertEqual(parse_rows([{"title": "Hair"}]), [{"title": "Hair"}])

    def test_empty_inputs(self):
        self.assertEqual(parse_rows(None), [])
        self.assertEqual(parse_rows(""), [])
        self.assertEqual(parse_rows([]), [])

    def test_bad_json(self):
        with self.assertRaises(ValidationError):
            parse_rows("[{broken")

    def test_non_object_rows(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_rows([{"name": "A"}, "B"])
        self.assertEqual(ctx.exception.errors[0].row, 2)

    def test_not_a_list(self):
        with self.assertRaises(ValidationError):
            parse_rows(42)


class TestSchemas(unittest.TestCase):

    def test_registry(self):
        self.assertEqual(set(SCHEMA_REGISTRY), {"categories", "staff", "services", "clients"})

    def test_base_item_is_abstract(self):
        with self.assertRaises(TypeError):
            BatchItem()

    def test_staff_payload(self):
        item = StaffItem.model_validate({"name": " Alice ", "specialization": "Stylist", "phone": "+1"})
        payload = item.to_payload()
        self.assertEqual(payload["name"], "Alice")
        self.assertEqual(payload["specialization"], "Stylist")
        self.assertEqual(payload["phone_number"], "+1")
        self.assertFalse(payload["is_user_invite"])

    def test_staff_numeric_phone(self):
        item = StaffItem.model_validate({"name": "Bob", "phone": 1234567})
        self.assertEqual(item.phone, "1234567")

    def test_service_coerces_csv_strings(self):
        item = ServiceItem.model_validate({
            "title": "Haircut", "price_min": "30", "duration": "3600", "category_id": "",
        })
        self.assertEqual(item.price_min, 30.0)
        self.assertEqual(item.duration, 3600)
        self.assertIsNone(item.category_id)

    def test_service_payload_defaults(self):
        item = ServiceItem.model_validate({"title": "Haircut", "price_min": 30, "duration": 3600})
        payload = item.to_payload(default_category_id=100)
        self.assertEqual(payload["price_max"], 30)
        self.assertEqual(payload["category_id"], 100)
        self.assertNotIn("category_id", item.to_payload())

    def test_service_explicit_category_wins(self):
        item = ServiceItem.model_validate({"title": "Color", "price_min": 50, "duration": 5400, "category_id": 7})
        self.assertEqual(item.to_payload(default_category_id=100)["category_id"], 7)

    def test_category_payload(self):
        item = CategoryItem.model_validate({"title": "Hair", "weight": "2", "api_id": ""})
        self.assertEqual(item.to_payload(), {"title": "Hair", "weight": 2})

    def test_client_label(self):
        item = ClientItem.model_validate({"name": "John", "surname": "Doe", "phone": "+1"})
        self.assertEqual(item.label(), "John Doe")


class TestValidateRows(unittest.TestCase):

    def test_all_valid(self):
        result = validate_rows(StaffItem, [{"name": "A"}, {"name": "B", "email": "b@example.com"}])
        self.assertTrue(result.ok)
        self.assertEqual([i.name for i in result.items], ["A", "B"])

    def test_collects_every_error(self):
        result = validate_rows(ServiceItem, [
            {"title": "Ok", "price_min": 10, "duration": 60},
            {"title": "", "price_min": 10, "duration": 60},
            {"title": "Neg", "price_min": -1, "duration": 0},
        ])
        self.assertFalse(result.ok)
        self.assertEqual(result.items, [])
        self.assertEqual({e.row for e in result.errors}, {2, 3})
        self.assertEqual(len([e for e in result.errors if e.row == 3]), 2)

    def test_price_range(self):
        result = validate_rows(ServiceItem, [{"title": "X", "price_min": 50, "price_max": 10, "duration": 60}])
        self.assertIn("price_max", result.errors[0].message)

    def test_client_needs_contact(self):
        result = validate_rows(ClientItem, [{"name": "Nobody"}])
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].message, "Either phone or email is required")
        self.assertEqual(str(result.errors[0]), "row 1: Either phone or email is required")

    def test_invalid_email(self):
        result = validate_rows(ClientItem, [{"name": "A", "email": "not-an-email"}])
        self.assertEqual(result.errors[0].field, "email")

    def test_missing_required_field(self):
        result = validate_rows(StaffItem, [{"specialization": "Stylist"}])
        self.assertEqual(result.errors[0].field, "name")

    def test_unknown_columns_ignored(self):
        result = validate_rows(CategoryItem, [{"title": "Hair", "colour": "red"}])
        self.assertTrue(result.ok)


if __name__ == "__main__":
    unittest.main()
