"""Attribute enumerations for each kind of bucket."""

from enum import Enum


class AttributeKind(str, Enum):
    """How an attribute behaves across transactions and period rebasing."""

    BALANCE = "balance"  # running total, kept when rebasing to a period start
    COUNTER = "counter"  # flow total, rebased to the period start
    POINT = "point"  # overwritten on the live values
    TRANSIENT = "transient"  # recorded on a transaction snapshot only


class BucketAttribute(Enum):
    """Base for bucket attributes; each member's value is (label, kind)."""

    def __init__(self, label: str, kind: AttributeKind) -> None:
        self.label = label
        self.kind = kind

    @property
    def is_counter(self) -> bool:
        return self.kind in (AttributeKind.BALANCE, AttributeKind.COUNTER)

    @property
    def is_rebased(self) -> bool:
        return self.kind == AttributeKind.COUNTER

    @property
    def is_transient(self) -> bool:
        return self.kind == AttributeKind.TRANSIENT


class AccountAttr(BucketAttribute):
    VALUATION = ("valuation", AttributeKind.BALANCE)
    FOREIGNVALUE = ("foreign_value", AttributeKind.BALANCE)
    LOCALVALUE = ("local_value", AttributeKind.BALANCE)
    BADDEBTCAPITAL = ("bad_debt_capital", AttributeKind.COUNTER)
    BADDEBTINTEREST = ("bad_debt_interest", AttributeKind.COUNTER)
    EXCHANGERATE = ("exchange_rate", AttributeKind.POINT)
    CURRENCYFLUCT = ("currency_fluct", AttributeKind.POINT)
    VALUEDELTA = ("value_delta", AttributeKind.POINT)


class SecurityAttr(BucketAttribute):
    UNITS = ("units", AttributeKind.BALANCE)
    RESIDUALCOST = ("residual_cost", AttributeKind.BALANCE)
    REALISEDGAINS = ("realised_gains", AttributeKind.COUNTER)
    GROWTHADJUST = ("growth_adjust", AttributeKind.COUNTER)
    INVESTED = ("invested", AttributeKind.COUNTER)
    FOREIGNINVESTED = ("foreign_invested", AttributeKind.COUNTER)
    DIVIDEND = ("dividend", AttributeKind.COUNTER)
    EXCHANGERATE = ("exchange_rate", AttributeKind.POINT)
    PRICE = ("price", AttributeKind.POINT)
    VALUATION = ("valuation", AttributeKind.POINT)
    FOREIGNVALUE = ("foreign_value", AttributeKind.POINT)
    VALUEDELTA = ("value_delta", AttributeKind.POINT)
    FOREIGNVALUEDELTA = ("foreign_value_delta", AttributeKind.POINT)
    PROFIT = ("profit", AttributeKind.POINT)
    MARKETPROFIT = ("market_profit", AttributeKind.POINT)
    MARKETGROWTH = ("market_growth", AttributeKind.POINT)
    FOREIGNMARKETGROWTH = ("foreign_market_growth", AttributeKind.POINT)
    LOCALMARKETGROWTH = ("local_market_growth", AttributeKind.POINT)
    CURRENCYFLUCT = ("currency_fluct", AttributeKind.POINT)
    UNREALISEDGAINS = ("unrealised_gains", AttributeKind.POINT)
    CASHINVESTED = ("cash_invested", AttributeKind.TRANSIENT)
    RETURNEDCASH = ("returned_cash", AttributeKind.TRANSIENT)
    ALLOWEDCOST = ("allowed_cost", AttributeKind.TRANSIENT)
    COSTDILUTION = ("cost_dilution", AttributeKind.TRANSIENT)
    CONSIDERATION = ("consideration", AttributeKind.TRANSIENT)
    CAPITALGAIN = ("capital_gain", AttributeKind.TRANSIENT)
    XFERREDVALUE = ("xferred_value", AttributeKind.TRANSIENT)
    XFERREDCOST = ("xferred_cost", AttributeKind.TRANSIENT)
    CASHTYPE = ("cash_type", AttributeKind.TRANSIENT)


class PayeeAttr(BucketAttribute):
    INCOME = ("income", AttributeKind.COUNTER)
    EXPENSE = ("expense", AttributeKind.COUNTER)
    PROFIT = ("profit", AttributeKind.POINT)


class CategoryAttr(BucketAttribute):
    INCOME = ("income", AttributeKind.COUNTER)
    EXPENSE = ("expense", AttributeKind.COUNTER)
    PROFIT = ("profit", AttributeKind.POINT)


class TaxBasisAttr(BucketAttribute):
    GROSS = ("gross", AttributeKind.COUNTER)
    NETT = ("nett", AttributeKind.COUNTER)
    TAXCREDIT = ("tax_credit", AttributeKind.COUNTER)


class TagAttr(BucketAttribute):
    TRANSACTIONS = ("transactions", AttributeKind.COUNTER)
