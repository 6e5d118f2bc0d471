import unittest

from gst_nexus.services.demand_calculator import (apply_interest, build_payment_rows, calculate_interest,
                                                  defect_balance, defect_summary, defect_total, interest_days,
                                                  normalize_head, notice_demand, paid_so_far, round_half_up,
                                                  row_total, to_amount)


def make_defect(defect_id=1, status="Active", **heads):
    defect = {'id': defect_id, 'status': status}
    for head in ("igst", "cgst", "sgst", "cess"):
        defect[head] = heads.get(head, {})
    return defect


class TestAmounts(unittest.TestCase):

    def test_to_amount(self):
        self.assertEqual(to_amount(None), 0.0)
        self.assertEqual(to_amount(""), 0.0)
        self.assertEqual(to_amount("1,50,000"), 150000.0)
        self.assertEqual(to_amount("₹ 500"), 500.0)
        with self.assertRaises(ValueError):
            to_amount("abc")

    def test_non_finite_amounts_rejected(self):
        for value in ("inf", "-inf", "1e400", float('nan')):
            with self.assertRaisesRegex(ValueError, "Invalid amount"):
                to_amount(value)
        with self.assertRaisesRegex(ValueError, "Invalid amount"):
            normalize_head({'tax': "inf"})

    def test_normalize_head_fills_missing_fields(self):
        self.assertEqual(normalize_head({'tax': "100"}),
                         {'tax': 100.0, 'interest': 0.0, 'penalty': 0.0, 'late_fee': 0.0, 'others': 0.0})

    def test_negative_amount_rejected(self):
        with self.assertRaises(ValueError):
            normalize_head({'penalty': -1})


class TestTotals(unittest.TestCase):

    def setUp(self):
        self.defect = make_defect(
            igst={'tax': 500000, 'interest': 40000},
            cgst={'tax': 1000, 'penalty': 100, 'late_fee': 50, 'others': 10},
        )

    def test_row_and_defect_total(self):
        self.assertEqual(row_total(self.defect['igst']), 540000)
        self.assertEqual(row_total(self.defect['cgst']), 1160)
        self.assertEqual(row_total(None), 0)
        self.assertEqual(defect_total(self.defect), 541160)

    def test_summary_by_field(self):
        summary = defect_summary(self.defect)
        self.assertEqual(summary['tax'], 501000)
        self.assertEqual(summary['interest'], 40000)
        self.assertEqual(summary['others'], 10)

    def test_waived_defects_excluded_from_demand(self):
        waived = make_defect(2, status="Waived", sgst={'tax': 999})
        self.assertEqual(notice_demand([self.defect, waived]), 541160)
        self.assertEqual(notice_demand([]), 0)


class TestInterest(unittest.TestCase):

    def test_simple_interest(self):
        # 100000 * 18 * 100 / 36500 = 4931.5 -> 4932
        self.assertEqual(calculate_interest(100000, 18, 100), 4932)
        self.assertEqual(calculate_interest(0, 18, 100), 0)

    def test_zero_rate_gives_zero_interest(self):
        self.assertEqual(calculate_interest(100000, 0, 100), 0)
        with self.assertRaisesRegex(ValueError, "cannot be negative"):
            calculate_interest(100000, -1, 100)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(3.5), 4)
        self.assertEqual(round_half_up(2.49), 2)

    def test_non_positive_days_rejected(self):
        with self.assertRaisesRegex(ValueError, "To Date must be after From Date"):
            calculate_interest(1000, 18, 0)
        with self.assertRaisesRegex(ValueError, "To Date must be after From Date"):
            interest_days("2023-05-01", "2023-04-01")

    def test_interest_days(self):
        self.assertEqual(interest_days("2023-01-01", "2023-04-11"), 100)

    def test_apply_interest_overwrites_per_head(self):
        defect = make_defect(igst={'tax': 100000, 'interest': 77}, cgst={'tax': 36500})
        heads = apply_interest(defect, 18, 100)
        self.assertEqual(heads['igst']['interest'], 4932)
        self.assertEqual(heads['cgst']['interest'], 1800)
        self.assertEqual(heads['sgst']['interest'], 0)
        # Input untouched
        self.assertEqual(defect['igst']['interest'], 77)

    def test_apply_interest_is_idempotent(self):
        defect = make_defect(igst={'tax': 100000})
        first = apply_interest(defect, 18, 100)
        second = apply_interest({**defect, **first}, 18, 100)
        self.assertEqual(first, second)


class TestBalances(unittest.TestCase):

    def test_balance_uses_only_linked_payments(self):
        defect = make_defect(7, igst={'tax': 10000})
        payments = [
            {'defect_id': 7, 'amount': 4000},
            {'defect_id': None, 'amount': 2500},
            {'defect_id': 8, 'amount': 1000},
        ]
        self.assertEqual(paid_so_far(7, payments), 4000)
        self.assertEqual(defect_balance(defect, payments), 6000)

    def test_overpayment_floors_at_zero(self):
        defect = make_defect(7, igst={'tax': 100})
        self.assertEqual(defect_balance(defect, [{'defect_id': 7, 'amount': 500}]), 0)

    def test_waived_balance_is_zero(self):
        defect = make_defect(7, status="Waived", igst={'tax': 100})
        self.assertEqual(defect_balance(defect, []), 0)


class TestPaymentMatrix(unittest.TestCase):

    def test_only_positive_cells_become_rows(self):
        rows = build_payment_rows({
            'igst': {'tax': 1000, 'interest': 0, 'penalty': ""},
            'cgst': {'late_fee': 50},
        })
        self.assertEqual(rows, [("IGST", "Tax", 1000.0), ("CGST", "Late Fee", 50.0)])

    def test_empty_matrix_rejected(self):
        with self.assertRaisesRegex(ValueError, "Enter at least one amount"):
            build_payment_rows({'igst': {'tax': 0}})

    def test_negative_cell_rejected(self):
        with self.assertRaises(ValueError):
            build_payment_rows({'sgst': {'tax': -5}})


if __name__ == '__main__':
    unittest.main()
