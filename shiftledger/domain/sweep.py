"""
Sweep Engine - redistributes a closing shift's gross sales into the ledger.

Posting order (part of the audit contract, do not reorder):
  1. gross sales recognised on the sales account
  2. non-cash pairs: cards, hiking bar, foreign currency, each credit bill
  3. one cash-till leg per expense
  4. cash sales pair from sales to the cash till
  5. variance, posted with the same sign on the variance account and the till
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from .entities import Shift, Transaction
from .exceptions import IncompleteConfigurationError, ValidationError
from .value_objects import ZERO, ShiftFlowConfig, TransactionCategory

logger = logging.getLogger(__name__)


class SweepEngine:
    """Builds the ordered list of ledger legs for a closed shift. No I/O."""

    def plan(self, shift: Shift, config: ShiftFlowConfig) -> list[Transaction]:
        if shift.is_open or shift.end_time is None or shift.difference is None:
            raise ValidationError("Only a closed shift can be swept", field="status")
        if not config.is_complete():
            raise IncompleteConfigurationError(config.missing_roles())

        legs: list[Transaction] = []

        def post(account_id: str, amount: Decimal, description: str,
                 category: str = TransactionCategory.TRANSFER) -> None:
            legs.append(Transaction(
                account_id=account_id,
                amount=amount,
                category=category,
                description=description,
                date=shift.end_time,
                shift_id=shift.id,
            ))

        def transfer(amount: Decimal, destination: str, out_text: str, in_text: str) -> None:
            post(config.sales_account, -amount, out_text)
            post(destination, amount, in_text)

        post(
            config.sales_account,
            shift.total_sales,
            f"Sales Revenue ({shift.accounting_date.isoformat()})",
            TransactionCategory.REVENUE,
        )

        if shift.cards > 0:
            transfer(shift.cards, config.cards_account,
                     "Sales Card Sweep", "Card Settlement Receipt")
        if shift.hiking_bar > 0:
            transfer(shift.hiking_bar, config.hiking_account,
                     "Hiking Bar Shift Portion", "Hiking Bar Receivable Log")
        if shift.foreign_currency.value > 0:
            transfer(shift.foreign_currency.value, config.fx_account,
                     "FX Reserve Transfer", f"FX Reserve: {shift.foreign_currency.comment}")
        for bill in shift.credit_bills:
            if bill.amount > 0:
                transfer(bill.amount, config.bills_account,
                         f"Credit Bill: {bill.customer_name}", f"Receivable: {bill.customer_name}")

        for expense in shift.expenses:
            post(config.cash_account, -expense.amount,
                 f"Shift Expense: {expense.description}", expense.category)

        cash_sales = shift.cash_sales
        if cash_sales > 0:
            transfer(cash_sales, config.cash_account, "Cash Sales Deposit", "Cash Sales Receipt")
        elif cash_sales < 0:
            logger.warning(
                "sweep_negative_cash_sales",
                extra={"shift_id": shift.id, "cash_sales": str(cash_sales)},
            )

        # Same sign on both accounts, not an offsetting pair.
        if shift.difference != 0:
            label = "Over" if shift.difference > 0 else "Short"
            post(config.variance_account, shift.difference,
                 f"Shift Cash Variance ({label})", TransactionCategory.ADJUSTMENT)
            post(config.cash_account, shift.difference,
                 "Cash Variance Correction", TransactionCategory.ADJUSTMENT)

        logger.info("sweep_planned", extra={"shift_id": shift.id, "legs": len(legs)})
        return legs

    @staticmethod
    def net_by_account(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in transactions:
            totals[txn.account_id] += txn.amount
        return dict(totals)
