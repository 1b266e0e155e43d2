"""Transaction categories, tags and tax bases."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID, uuid4


class CategoryClass(str, Enum):
    # Income
    TAXEDINCOME = "taxed_income"
    GROSSINCOME = "gross_income"
    OTHERINCOME = "other_income"
    INTEREST = "interest"
    TAXEDINTEREST = "taxed_interest"
    GROSSINTEREST = "gross_interest"
    TAXFREEINTEREST = "tax_free_interest"
    PEER2PEERINTEREST = "peer2peer_interest"
    DIVIDEND = "dividend"
    SHAREDIVIDEND = "share_dividend"
    UNITTRUSTDIVIDEND = "unit_trust_dividend"
    FOREIGNDIVIDEND = "foreign_dividend"
    TAXFREEDIVIDEND = "tax_free_dividend"
    LOYALTYBONUS = "loyalty_bonus"
    TAXEDLOYALTYBONUS = "taxed_loyalty_bonus"
    GROSSLOYALTYBONUS = "gross_loyalty_bonus"
    TAXFREELOYALTYBONUS = "tax_free_loyalty_bonus"
    RENTALINCOME = "rental_income"
    ROOMRENTALINCOME = "room_rental_income"
    LOANINTERESTEARNED = "loan_interest_earned"
    INHERITED = "inherited"
    CASHBACK = "cashback"
    GIFTEDINCOME = "gifted_income"
    PENSIONCONTRIB = "pension_contribution"

    # Expense
    EXPENSE = "expense"
    LOCALTAXES = "local_taxes"
    WRITEOFF = "write_off"
    LOANINTERESTCHARGED = "loan_interest_charged"
    RENTALEXPENSE = "rental_expense"
    RECOVEREDEXPENSES = "recovered_expenses"
    INCOMETAX = "income_tax"
    BADDEBTCAPITAL = "bad_debt_capital"
    BADDEBTINTEREST = "bad_debt_interest"

    # Singular categories maintained by the analysis itself
    TAXCREDIT = "tax_credit"
    TAXRELIEF = "tax_relief"
    EMPLOYERNATINS = "employer_nat_ins"
    EMPLOYEENATINS = "employee_nat_ins"
    DEEMEDBENEFIT = "deemed_benefit"
    WITHHELD = "withheld"
    CAPITALGAIN = "capital_gain"
    TAXFREEGAIN = "tax_free_gain"
    CHARGEABLEGAIN = "chargeable_gain"
    MARKETGROWTH = "market_growth"
    CURRENCYFLUCTUATION = "currency_fluctuation"

    # Transfers and corporate actions
    TRANSFER = "transfer"
    STOCKSPLIT = "stock_split"
    UNITSADJUST = "units_adjust"
    STOCKDEMERGER = "stock_demerger"
    SECURITYREPLACE = "security_replace"
    STOCKTAKEOVER = "stock_takeover"
    STOCKRIGHTSISSUE = "stock_rights_issue"
    PORTFOLIOXFER = "portfolio_transfer"
    SECURITYCLOSURE = "security_closure"

    @property
    def is_income(self) -> bool:
        return self in _INCOME_CLASSES

    @property
    def is_expense(self) -> bool:
        return self in _EXPENSE_CLASSES

    @property
    def is_transfer(self) -> bool:
        """Transfers and corporate actions move value without income or expense."""
        return self in _TRANSFER_CLASSES

    @property
    def is_switch_direction(self) -> bool:
        """Income recorded against the paying asset, so its direction reads backwards."""
        return self in _SWITCH_DIRECTION_CLASSES

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title().replace(" ", "")


_INCOME_CLASSES = frozenset(
    {
        CategoryClass.TAXEDINCOME,
        CategoryClass.GROSSINCOME,
        CategoryClass.OTHERINCOME,
        CategoryClass.INTEREST,
        CategoryClass.TAXEDINTEREST,
        CategoryClass.GROSSINTEREST,
        CategoryClass.TAXFREEINTEREST,
        CategoryClass.PEER2PEERINTEREST,
        CategoryClass.DIVIDEND,
        CategoryClass.SHAREDIVIDEND,
        CategoryClass.UNITTRUSTDIVIDEND,
        CategoryClass.FOREIGNDIVIDEND,
        CategoryClass.TAXFREEDIVIDEND,
        CategoryClass.LOYALTYBONUS,
        CategoryClass.TAXEDLOYALTYBONUS,
        CategoryClass.GROSSLOYALTYBONUS,
        CategoryClass.TAXFREELOYALTYBONUS,
        CategoryClass.RENTALINCOME,
        CategoryClass.ROOMRENTALINCOME,
        CategoryClass.LOANINTERESTEARNED,
        CategoryClass.INHERITED,
        CategoryClass.CASHBACK,
        CategoryClass.GIFTEDINCOME,
        CategoryClass.PENSIONCONTRIB,
        CategoryClass.EMPLOYERNATINS,
        CategoryClass.EMPLOYEENATINS,
        CategoryClass.DEEMEDBENEFIT,
        CategoryClass.CAPITALGAIN,
        CategoryClass.TAXFREEGAIN,
        CategoryClass.CHARGEABLEGAIN,
        CategoryClass.MARKETGROWTH,
        CategoryClass.CURRENCYFLUCTUATION,
    }
)

_EXPENSE_CLASSES = frozenset(
    {
        CategoryClass.EXPENSE,
        CategoryClass.LOCALTAXES,
        CategoryClass.WRITEOFF,
        CategoryClass.LOANINTERESTCHARGED,
        CategoryClass.RENTALEXPENSE,
        CategoryClass.RECOVEREDEXPENSES,
        CategoryClass.INCOMETAX,
        CategoryClass.BADDEBTCAPITAL,
        CategoryClass.BADDEBTINTEREST,
        CategoryClass.TAXCREDIT,
        CategoryClass.TAXRELIEF,
        CategoryClass.WITHHELD,
    }
)

_TRANSFER_CLASSES = frozenset(
    {
        CategoryClass.TRANSFER,
        CategoryClass.STOCKSPLIT,
        CategoryClass.UNITSADJUST,
        CategoryClass.STOCKDEMERGER,
        CategoryClass.SECURITYREPLACE,
        CategoryClass.STOCKTAKEOVER,
        CategoryClass.STOCKRIGHTSISSUE,
        CategoryClass.PORTFOLIOXFER,
        CategoryClass.SECURITYCLOSURE,
    }
)

_SWITCH_DIRECTION_CLASSES = frozenset(
    {
        CategoryClass.INTEREST,
        CategoryClass.TAXEDINTEREST,
        CategoryClass.GROSSINTEREST,
        CategoryClass.TAXFREEINTEREST,
        CategoryClass.PEER2PEERINTEREST,
        CategoryClass.DIVIDEND,
        CategoryClass.SHAREDIVIDEND,
        CategoryClass.UNITTRUSTDIVIDEND,
        CategoryClass.FOREIGNDIVIDEND,
        CategoryClass.TAXFREEDIVIDEND,
        CategoryClass.LOYALTYBONUS,
        CategoryClass.TAXEDLOYALTYBONUS,
        CategoryClass.GROSSLOYALTYBONUS,
        CategoryClass.TAXFREELOYALTYBONUS,
        CategoryClass.LOANINTERESTEARNED,
        CategoryClass.CASHBACK,
    }
)


class TaxBasisClass(str, Enum):
    SALARY = "salary"
    ROOMRENTAL = "room_rental"
    RENTALINCOME = "rental_income"
    OTHERINCOME = "other_income"
    TAXEDINTEREST = "taxed_interest"
    UNTAXEDINTEREST = "untaxed_interest"
    PEER2PEERINTEREST = "peer2peer_interest"
    DIVIDEND = "dividend"
    UNITTRUSTDIVIDEND = "unit_trust_dividend"
    FOREIGNDIVIDEND = "foreign_dividend"
    CHARGEABLEGAINS = "chargeable_gains"
    CAPITALGAINS = "capital_gains"
    TAXFREE = "tax_free"
    MARKET = "market"
    TAXPAID = "tax_paid"
    EXPENSE = "expense"
    VIRTUAL = "virtual"

    @property
    def is_expense(self) -> bool:
        return self in (TaxBasisClass.TAXPAID, TaxBasisClass.EXPENSE, TaxBasisClass.VIRTUAL)

    @property
    def analysed_by_account(self) -> bool:
        """Whether the basis keeps a sub-bucket per originating account."""
        return self in (
            TaxBasisClass.ROOMRENTAL,
            TaxBasisClass.RENTALINCOME,
            TaxBasisClass.TAXEDINTEREST,
            TaxBasisClass.UNTAXEDINTEREST,
            TaxBasisClass.PEER2PEERINTEREST,
            TaxBasisClass.DIVIDEND,
            TaxBasisClass.UNITTRUSTDIVIDEND,
            TaxBasisClass.FOREIGNDIVIDEND,
            TaxBasisClass.CHARGEABLEGAINS,
        )


@dataclass
class TransactionCategory:
    name: str
    category_class: CategoryClass
    parent: "TransactionCategory | None" = None
    id: UUID = field(default_factory=uuid4)

    @property
    def depth(self) -> int:
        depth = 0
        parent = self.parent
        while parent is not None:
            depth += 1
            parent = parent.parent
        return depth

    @property
    def full_name(self) -> str:
        if self.parent is None:
            return self.name
        return f"{self.parent.full_name}:{self.name}"


@dataclass
class TransactionTag:
    name: str
    id: UUID = field(default_factory=uuid4)
