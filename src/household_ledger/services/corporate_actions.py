"""Corporate actions that move cost and units between two holdings."""

from decimal import Decimal

from household_ledger.analysis.analysis import Analysis
from household_ledger.analysis.attributes import SecurityAttr
from household_ledger.analysis.securities import SecurityBucket
from household_ledger.config import Settings
from household_ledger.domain.assets import AccountAsset, Portfolio, SecurityHolding
from household_ledger.domain.value_objects import CashType, Money, Units
from household_ledger.exceptions import DataConsistencyError
from household_ledger.logging_config import get_logger
from household_ledger.services.transaction_helper import TransactionHelper

logger = get_logger(__name__)


def classify_distribution(amount: Money, value: Money, settings: Settings) -> CashType:
    """Classify a capital distribution against the remaining holding value.

    A distribution is large only when it exceeds both the fixed limit and
    the configured share of the value of the holding after the event.

    Args:
        amount: Cash distributed, in the reporting currency.
        value: Value of the holding after the event, in the reporting currency.
        settings: Source of the distribution limits.

    Returns:
        CashType.LARGE or CashType.SMALL.
    """
    limit_value = Money(settings.distribution_limit_value, amount.currency)
    limit = value.at_rate(settings.distribution_limit_rate)
    if amount > limit_value and amount > limit:
        return CashType.LARGE
    return CashType.SMALL


class CorporateActionProcessor:
    """Applies splits, de-mergers and takeovers to security buckets."""

    def __init__(self, analysis: Analysis) -> None:
        self._analysis = analysis
        self._portfolios = analysis.portfolios
        self._price_map = analysis.price_map

    def _price(self, holding: SecurityHolding, helper: TransactionHelper) -> Money:
        return self._price_map.get_price_for_date(holding.security, helper.transaction_date)

    def _local_value(
        self, bucket: SecurityBucket, units: Units, price: Money, rate: Decimal
    ) -> Money:
        value = units.value_at_price(price)
        if bucket.is_foreign:
            value = value.convert(self._analysis.currency, rate)
        return value

    def adjust_units(self, helper: TransactionHelper, holding: SecurityHolding) -> None:
        """Stock split or manual units adjustment; cost is unchanged."""
        bucket = self._portfolios.get_holding_bucket(holding)
        delta = helper.debit_units
        if delta is not None:
            bucket.adjust_counter(SecurityAttr.UNITS, delta)
        snapshot = bucket.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, self._price(holding, helper))

    def demerge(
        self,
        helper: TransactionHelper,
        source: SecurityHolding,
        target: SecurityHolding,
    ) -> None:
        """Move the diluted share of the source's cost to the de-merged holding.

        Raises:
            DataConsistencyError: If the transaction carries no dilution factor.
        """
        dilution = helper.dilution
        if dilution is None:
            raise DataConsistencyError(
                "Stock de-merger requires a dilution factor",
                context={"transaction_id": str(helper.transaction.id)},
            )

        debit = self._portfolios.get_holding_bucket(source)
        credit = self._portfolios.get_holding_bucket(target)
        debit_rate = helper.debit_exchange_rate
        credit_rate = helper.credit_exchange_rate

        delta_units = helper.debit_units
        if delta_units is not None:
            debit.adjust_counter(SecurityAttr.UNITS, delta_units)

        cost = debit.get_money(SecurityAttr.RESIDUALCOST)
        new_cost = cost.at_rate(dilution)
        cost_dilution = new_cost.ratio_to(cost) if not cost.is_zero else dilution
        delta_cost = new_cost - cost

        debit.adjust_counter(SecurityAttr.RESIDUALCOST, delta_cost)
        debit.adjust_counter(SecurityAttr.INVESTED, delta_cost)
        if debit.is_foreign:
            debit.adjust_counter(
                SecurityAttr.FOREIGNINVESTED,
                helper.to_foreign(delta_cost, debit.currency, debit_rate),
            )
        snapshot = debit.register_transaction(helper)
        snapshot.set_value(SecurityAttr.XFERREDCOST, -delta_cost)
        snapshot.set_value(SecurityAttr.COSTDILUTION, cost_dilution)
        if debit.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, debit_rate)

        xferred_cost = -delta_cost
        credit.adjust_counter(SecurityAttr.RESIDUALCOST, xferred_cost)
        credit.adjust_counter(SecurityAttr.INVESTED, xferred_cost)
        if credit.is_foreign:
            credit.adjust_counter(
                SecurityAttr.FOREIGNINVESTED,
                helper.to_foreign(xferred_cost, credit.currency, credit_rate),
            )

        price = self._price(target, helper)
        credit_units = helper.credit_units or Units.zero()
        xferred_value = self._local_value(credit, credit_units, price, credit_rate)
        credit.adjust_counter(SecurityAttr.UNITS, credit_units)

        snapshot = credit.register_transaction(helper)
        snapshot.set_value(SecurityAttr.XFERREDCOST, xferred_cost)
        snapshot.set_value(SecurityAttr.PRICE, price)
        snapshot.set_value(SecurityAttr.XFERREDVALUE, xferred_value)
        if credit.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, credit_rate)

        logger.debug(
            "stock_demerged",
            source=source.name,
            target=target.name,
            xferred_cost=str(xferred_cost.amount),
        )

    def take_over(
        self,
        helper: TransactionHelper,
        source: SecurityHolding,
        target: SecurityHolding,
    ) -> None:
        """Replace one holding with another, with or without a cash element.

        Raises:
            DataConsistencyError: If cash is returned without an account to receive it.
        """
        cash_account = helper.returned_cash_account
        if not helper.returned_cash.is_zero:
            if cash_account is None:
                raise DataConsistencyError(
                    "Takeover returns cash but names no account to receive it",
                    context={"transaction_id": str(helper.transaction.id)},
                )
            self._take_over_for_stock_and_cash(helper, source, target, cash_account)
        else:
            self._take_over_for_stock(helper, source, target)

    def _take_over_for_stock(
        self,
        helper: TransactionHelper,
        source: SecurityHolding,
        target: SecurityHolding,
    ) -> None:
        debit = self._portfolios.get_holding_bucket(source)
        credit = self._portfolios.get_holding_bucket(target)
        debit_rate = helper.debit_exchange_rate
        credit_rate = helper.credit_exchange_rate

        debit_price = self._price(source, helper)
        debit_units = debit.get_units()
        debit_value = self._local_value(debit, debit_units, debit_price, debit_rate)
        cost = debit.get_money(SecurityAttr.RESIDUALCOST)
        invested = debit.get_money(SecurityAttr.INVESTED)

        credit_price = self._price(target, helper)
        credit_units = helper.credit_units or Units.zero()
        xferred_value = self._local_value(credit, credit_units, credit_price, credit_rate)

        profit = debit_value - cost
        debit.adjust_counter(SecurityAttr.GROWTHADJUST, profit)
        credit.adjust_counter(SecurityAttr.GROWTHADJUST, -profit)

        credit.adjust_counter(SecurityAttr.RESIDUALCOST, cost)
        credit.adjust_counter(SecurityAttr.UNITS, credit_units)
        credit.adjust_counter(SecurityAttr.INVESTED, invested)
        if credit.is_foreign:
            credit.adjust_counter(
                SecurityAttr.FOREIGNINVESTED,
                helper.to_foreign(invested, credit.currency, credit_rate),
            )
        credit_value = self._local_value(credit, credit.get_units(), credit_price, credit_rate)

        snapshot = credit.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, credit_price)
        snapshot.set_value(SecurityAttr.VALUATION, credit_value)
        snapshot.set_value(SecurityAttr.XFERREDVALUE, xferred_value)
        snapshot.set_value(SecurityAttr.XFERREDCOST, cost)
        if credit.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, credit_rate)

        debit.adjust_counter(SecurityAttr.RESIDUALCOST, -cost)
        debit.adjust_counter(SecurityAttr.UNITS, -debit_units)
        debit.adjust_counter(SecurityAttr.INVESTED, -invested)
        if debit.is_foreign:
            debit.adjust_counter(
                SecurityAttr.FOREIGNINVESTED, -debit.get_money(SecurityAttr.FOREIGNINVESTED)
            )

        snapshot = debit.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, debit_price)
        snapshot.set_value(SecurityAttr.VALUATION, Money.zero(self._analysis.currency))
        snapshot.set_value(SecurityAttr.XFERREDVALUE, xferred_value)
        snapshot.set_value(SecurityAttr.XFERREDCOST, cost)
        if debit.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, debit_rate)

        logger.debug("stock_taken_over", source=source.name, target=target.name)

    def _take_over_for_stock_and_cash(
        self,
        helper: TransactionHelper,
        source: SecurityHolding,
        target: SecurityHolding,
        cash_account: AccountAsset,
    ) -> None:
        debit = self._portfolios.get_holding_bucket(source)
        credit = self._portfolios.get_holding_bucket(target)
        debit_rate = helper.debit_exchange_rate
        credit_rate = helper.credit_exchange_rate

        debit_price = self._price(source, helper)
        debit_units = debit.get_units()
        cost = debit.get_money(SecurityAttr.RESIDUALCOST)
        debit_value = self._local_value(debit, debit_units, debit_price, debit_rate)

        credit_price = self._price(target, helper)
        credit_units = helper.credit_units or Units.zero()
        xferred_value = self._local_value(credit, credit_units, credit_price, credit_rate)

        amount = helper.local_returned_cash
        consideration = amount + xferred_value
        cash_type = classify_distribution(amount, debit_value, self._analysis.settings)

        cost_dilution: Decimal | None = None
        if cash_type == CashType.LARGE:
            cost_xferred = cost.weighted(xferred_value, consideration)
            cost_dilution = amount.ratio_to(consideration)
            allowed_cost = cost - cost_xferred
        else:
            allowed_cost = min(amount, cost)
            cost_xferred = cost - allowed_cost

        gain = amount - allowed_cost
        if not gain.is_zero:
            debit.adjust_counter(SecurityAttr.REALISEDGAINS, gain)
            self._analysis.categories.adjust_standard_gain(helper, source, gain)

        profit = xferred_value - cost_xferred
        debit.adjust_counter(SecurityAttr.GROWTHADJUST, profit)
        credit.adjust_counter(SecurityAttr.GROWTHADJUST, -profit)

        credit.adjust_counter(SecurityAttr.RESIDUALCOST, cost_xferred)
        credit.adjust_counter(SecurityAttr.UNITS, credit_units)
        credit.adjust_counter(SecurityAttr.INVESTED, cost_xferred)
        if credit.is_foreign:
            credit.adjust_counter(
                SecurityAttr.FOREIGNINVESTED,
                helper.to_foreign(cost_xferred, credit.currency, credit_rate),
            )
        credit_value = self._local_value(credit, credit.get_units(), credit_price, credit_rate)

        snapshot = credit.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, credit_price)
        snapshot.set_value(SecurityAttr.VALUATION, credit_value)
        snapshot.set_value(SecurityAttr.XFERREDVALUE, xferred_value)
        snapshot.set_value(SecurityAttr.XFERREDCOST, cost_xferred)
        if credit.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, credit_rate)

        invested_delta = -(amount + cost_xferred)
        debit.adjust_counter(SecurityAttr.RESIDUALCOST, -cost)
        debit.adjust_counter(SecurityAttr.UNITS, -debit_units)
        debit.adjust_counter(SecurityAttr.INVESTED, invested_delta)
        if debit.is_foreign:
            debit.adjust_counter(
                SecurityAttr.FOREIGNINVESTED,
                helper.to_foreign(invested_delta, debit.currency, debit_rate),
            )

        snapshot = debit.register_transaction(helper)
        snapshot.set_value(SecurityAttr.PRICE, debit_price)
        snapshot.set_value(SecurityAttr.VALUATION, Money.zero(self._analysis.currency))
        snapshot.set_value(SecurityAttr.CONSIDERATION, consideration)
        snapshot.set_value(SecurityAttr.RETURNEDCASH, amount)
        snapshot.set_value(SecurityAttr.XFERREDVALUE, xferred_value)
        snapshot.set_value(SecurityAttr.XFERREDCOST, cost_xferred)
        snapshot.set_value(SecurityAttr.ALLOWEDCOST, allowed_cost)
        snapshot.set_value(SecurityAttr.CASHTYPE, cash_type)
        if cost_dilution is not None:
            snapshot.set_value(SecurityAttr.COSTDILUTION, cost_dilution)
        if not gain.is_zero:
            snapshot.set_value(SecurityAttr.CAPITALGAIN, gain)
        if debit.is_foreign:
            snapshot.set_value(SecurityAttr.EXCHANGERATE, debit_rate)

        if isinstance(cash_account, Portfolio):
            cash_bucket = self._portfolios.get_cash_bucket(cash_account)
        else:
            cash_bucket = self._analysis.account_list_for(cash_account).get_bucket(cash_account)
        cash_bucket.adjust_for_returned_cash_credit(helper)

        logger.debug(
            "stock_taken_over_for_cash",
            source=source.name,
            target=target.name,
            cash_type=cash_type.value,
            gain=str(gain.amount),
        )
