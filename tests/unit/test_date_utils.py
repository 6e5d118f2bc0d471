import unittest
from datetime import date, datetime

from gst_nexus.utils.date_utils import (add_days, count_days, days_since, normalize_financial_year, normalize_gstin,
                                        normalize_period, parse_date, parse_excel_date, validate_gstin_format)


class TestDateUtils(unittest.TestCase):

    def test_fy_normalization(self):
        # 2-digit end year
        self.assertEqual(normalize_financial_year("2022-23"), "2022-23")
        self.assertEqual(normalize_financial_year("22-23"), "2022-23")

        # 4-digit end year
        self.assertEqual(normalize_financial_year("2022-2023"), "2022-23")

        # Spaces and prefix
        self.assertEqual(normalize_financial_year(" 2022 - 23 "), "2022-23")
        self.assertEqual(normalize_financial_year("FY 2021-22"), "2021-22")

        # Non-consecutive years are rejected
        self.assertIsNone(normalize_financial_year("2022-24"))
        self.assertIsNone(normalize_financial_year(""))

    def test_period_normalization(self):
        self.assertEqual(normalize_period("2021-22"), "FY 2021-22")
        self.assertEqual(normalize_period("Apr-2023"), "Apr-2023")
        self.assertEqual(normalize_period(None), "")

    def test_gstin_validation(self):
        # Valid
        self.assertTrue(validate_gstin_format("29AAAAA0000A1Z5"))
        self.assertTrue(validate_gstin_format("27abcde1234f1z1"))
        self.assertTrue(validate_gstin_format(" 27ABCDE1234F1Z1 "))

        # Invalid
        self.assertFalse(validate_gstin_format("1234567890"))  # Too short
        self.assertFalse(validate_gstin_format("29AAAAA0000A1X5"))  # X instead of Z
        self.assertFalse(validate_gstin_format(None))
        self.assertEqual(normalize_gstin(" 27abcde1234f1z1"), "27ABCDE1234F1Z1")

    def test_parse_date(self):
        self.assertEqual(parse_date("2023-03-25"), date(2023, 3, 25))
        self.assertEqual(parse_date("2023-03-25T10:30:00"), date(2023, 3, 25))
        self.assertEqual(parse_date(datetime(2023, 3, 25, 8, 0)), date(2023, 3, 25))
        self.assertIsNone(parse_date("not a date"))
        self.assertIsNone(parse_date(""))

    def test_count_days_rounds_partial_days_up(self):
        self.assertEqual(count_days("2023-01-01", "2023-04-11"), 100)
        self.assertEqual(count_days("2023-01-01T00:00:00", "2023-01-02T06:00:00"), 2)
        self.assertEqual(count_days("2023-01-10", "2023-01-01"), -9)
        with self.assertRaises(ValueError):
            count_days(None, "2023-01-01")

    def test_add_days_and_days_since(self):
        self.assertEqual(add_days("2023-01-01", 90), date(2023, 4, 1))
        self.assertIsNone(add_days("", 5))
        self.assertEqual(days_since("2024-01-01", "2024-01-11"), 10)
        self.assertIsNone(days_since(None, "2024-01-11"))

    def test_parse_excel_date(self):
        self.assertEqual(parse_excel_date(45000), "2023-03-15")
        self.assertEqual(parse_excel_date("15-03-2023"), "2023-03-15")
        self.assertEqual(parse_excel_date("15/03/2023"), "2023-03-15")
        self.assertEqual(parse_excel_date("15-Mar-2023"), "2023-03-15")
        self.assertEqual(parse_excel_date("2023-03-15"), "2023-03-15")
        self.assertEqual(parse_excel_date("", default="2020-01-01"), "2020-01-01")
        self.assertEqual(parse_excel_date("garbage", default="2020-01-01"), "2020-01-01")
        self.assertEqual(parse_excel_date(None), date.today().isoformat())


if __name__ == '__main__':
    unittest.main()
