import unittest
from decimal import Decimal

from stockledger import create_app
from stockledger.extensions import db
from stockledger.models import Product, InboundTransaction, OutboundTransaction
from stockledger.services import ledger_service, profit_service, stock_service
from stockledger.services.profit_service import _to_decimal


class ProfitServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "AUTO_CREATE_TABLES": False,
            "TESTING": True,
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(OutboundTransaction).delete()
        db.session.query(InboundTransaction).delete()
        db.session.query(Product).delete()
        db.session.commit()

    def _receive(self, quantity, unit_price, **identity):
        fields = {"brand": "A", "model": "X", "capacity": Decimal("500"), "capacity_unit": "GB"}
        fields.update(identity)
        return stock_service.record_inbound(
            db.session, quantity=quantity, unit_price=Decimal(unit_price), **fields
        )

    def _sell(self, product_id, quantity, unit_price=None):
        outcome = stock_service.record_outbound(
            db.session,
            product_id=product_id,
            quantity=quantity,
            unit_price=Decimal(unit_price) if unit_price is not None else None,
        )
        self.assertTrue(outcome.ok, outcome.message)
        return outcome

    def test_two_deliveries_then_sale(self):
        first = self._receive(10, "50.00")
        self._receive(5, "60.00")

        self.assertEqual(profit_service.get_cost_basis(db.session, first.product_id), Decimal("55"))

        outcome = self._sell(first.product_id, 5, "80.00")
        self.assertEqual(outcome.quantity, 10)

        report = profit_service.compute_profit_report(db.session)
        self.assertEqual(report.transaction_count, 1)
        line = report.lines[0]
        self.assertEqual(line.cost_basis, Decimal("55"))
        self.assertEqual(line.revenue, Decimal("400.00"))
        self.assertEqual(line.profit, Decimal("125.00"))
        self.assertEqual(report.total_profit, Decimal("125.00"))
        self.assertEqual(report.total_revenue, Decimal("400.00"))

        self.assertEqual(profit_service.compute_profit_summary(db.session), Decimal("125.00"))

    def test_cost_basis_is_unweighted_mean(self):
        created = self._receive(1, "10.00")
        self._receive(9, "20.00")

        # quantity-weighted would be 19.00
        self.assertEqual(profit_service.get_cost_basis(db.session, created.product_id), Decimal("15"))

    def test_falls_back_to_catalog_price_without_inbound_rows(self):
        created = self._receive(3, "40.00")
        inbound_id = db.session.query(InboundTransaction.id).filter_by(product_id=created.product_id).scalar()
        ledger_service.delete_ledger_row(db.session, ledger_type="inbound", transaction_id=inbound_id)
        db.session.commit()

        self.assertEqual(profit_service.get_cost_basis(db.session, created.product_id), Decimal("40.00"))

        self._sell(created.product_id, 2, "50.00")
        report = profit_service.compute_profit_report(db.session)
        self.assertEqual(report.lines[0].profit, Decimal("20.00"))
        self.assertEqual(profit_service.compute_profit_summary(db.session), Decimal("20.00"))

    def test_edited_catalog_price_is_ignored_when_history_exists(self):
        created = self._receive(4, "30.00")
        stock_service.edit_product(
            db.session, product_id=created.product_id, patch={"unit_price": Decimal("90.00")}
        )

        self.assertEqual(profit_service.get_cost_basis(db.session, created.product_id), Decimal("30"))

        # sale price defaults to the edited catalog price
        self._sell(created.product_id, 1)
        report = profit_service.compute_profit_report(db.session)
        self.assertEqual(report.lines[0].sale_price, Decimal("90.00"))
        self.assertEqual(report.lines[0].profit, Decimal("60.00"))

    def test_summary_matches_sum_of_report_lines(self):
        a = self._receive(10, "10.00")
        self._receive(10, "20.00")
        self._receive(10, "25.00")
        b = self._receive(8, "99.99", brand="B", interface="NVMe")
        c = self._receive(6, "12.34", brand="C", capacity_unit="TB")

        self._sell(a.product_id, 3, "30.00")
        self._sell(a.product_id, 7, "19.99")
        self._sell(b.product_id, 2, "89.50")
        self._sell(c.product_id, 6)

        report = profit_service.compute_profit_report(db.session)
        self.assertEqual(report.transaction_count, 4)

        line_sum = sum((line.profit for line in report.lines), Decimal("0"))
        summary = profit_service.compute_profit_summary(db.session)
        self.assertEqual(summary, line_sum.quantize(Decimal("0.01")))
        self.assertEqual(report.to_dict()["totalProfit"], float(summary))

    def test_summary_rounds_half_cents_like_the_report(self):
        # cost bases 10.005 and 6.665 put both profits exactly on a half cent
        cases = [
            ("Half-down", "10.00", "10.01", Decimal("-2.24")),
            ("Half-up", "10.00", "3.33", Decimal("1.11")),
        ]
        for brand, first_price, second_price, expected in cases:
            with self.subTest(brand=brand):
                self.setUp()
                created = self._receive(1, first_price, brand=brand)
                self._receive(1, second_price, brand=brand)
                self._sell(created.product_id, 1, "7.77")

                report = profit_service.compute_profit_report(db.session)
                self.assertEqual(report.to_dict()["totalProfit"], float(expected))
                self.assertEqual(profit_service.compute_profit_summary(db.session), expected)

    def test_report_is_newest_first(self):
        created = self._receive(10, "10.00")
        first = self._sell(created.product_id, 1, "11.00")
        self._sell(created.product_id, 1, "12.00")

        report = profit_service.compute_profit_report(db.session)
        self.assertEqual([line.sale_price for line in report.lines], [Decimal("12.00"), Decimal("11.00")])
        self.assertEqual(report.lines[-1].product_id, first.product_id)

    def test_empty_ledger(self):
        report = profit_service.compute_profit_report(db.session)
        self.assertEqual(report.to_dict(), {
            "transactions": [],
            "totalProfit": 0.0,
            "totalRevenue": 0.0,
            "transactionCount": 0,
        })
        self.assertEqual(profit_service.compute_profit_summary(db.session), Decimal("0.00"))

    def test_cost_basis_for_missing_product(self):
        self.assertIsNone(profit_service.get_cost_basis(db.session, 12345))

    def test_non_numeric_values_coerce_to_zero(self):
        self.assertEqual(_to_decimal(None), Decimal("0"))
        self.assertEqual(_to_decimal("not a price"), Decimal("0"))
        self.assertEqual(_to_decimal(float("nan")), Decimal("0"))
        self.assertEqual(_to_decimal(Decimal("Infinity")), Decimal("0"))
        self.assertEqual(_to_decimal(True), Decimal("0"))
        self.assertEqual(_to_decimal("12.5"), Decimal("12.5"))
        self.assertEqual(_to_decimal(7), Decimal("7"))


if __name__ == "__main__":
    unittest.main()
