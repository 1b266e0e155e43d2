"""Reference entities that transactions move value between."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4, uuid5

from household_ledger.domain.categories import CategoryClass, TransactionCategory
from household_ledger.domain.value_objects import Currency, Money


class PayeeType(str, Enum):
    PAYEE = "payee"
    EMPLOYER = "employer"
    INSTITUTION = "institution"
    GOVERNMENT = "government"
    MARKET = "market"
    INDIVIDUAL = "individual"
    TAXMAN = "taxman"


class DepositType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    BOND = "bond"
    PEER2PEER = "peer2peer"


class SecurityType(str, Enum):
    SHARES = "shares"
    UNIT_TRUST = "unit_trust"
    LIFE_BOND = "life_bond"
    ENDOWMENT = "endowment"
    STATE_PENSION = "state_pension"
    DEFINED_BENEFIT = "defined_benefit"
    DEFINED_CONTRIBUTION = "defined_contribution"
    PROPERTY = "property"
    VEHICLE = "vehicle"
    ASSET = "asset"

    @property
    def is_capital_gains(self) -> bool:
        return self in (SecurityType.SHARES, SecurityType.UNIT_TRUST, SecurityType.ASSET)

    @property
    def auto_units(self) -> Decimal | None:
        """Unit count assumed on first acquisition of a non-traded asset."""
        if self in (
            SecurityType.STATE_PENSION,
            SecurityType.DEFINED_BENEFIT,
            SecurityType.PROPERTY,
            SecurityType.VEHICLE,
        ):
            return Decimal("1")
        return None


@dataclass
class Payee:
    name: str
    payee_type: PayeeType = PayeeType.PAYEE
    closed: bool = False
    id: UUID = field(default_factory=uuid4)

    @property
    def currency(self) -> None:
        return None


@dataclass
class Deposit:
    name: str
    currency: Currency = Currency.GBP
    deposit_type: DepositType = DepositType.SAVINGS
    parent: Payee | None = None
    opening_balance: Money | None = None
    is_tax_free: bool = False
    is_gross: bool = False
    closed: bool = False
    id: UUID = field(default_factory=uuid4)

    @property
    def is_peer2peer(self) -> bool:
        return self.deposit_type == DepositType.PEER2PEER

    def detailed_class(self, category_class: CategoryClass) -> CategoryClass:
        """Refine generic interest or loyalty bonus by the deposit's tax treatment."""
        if category_class == CategoryClass.INTEREST:
            if self.is_tax_free:
                return CategoryClass.TAXFREEINTEREST
            if self.is_peer2peer:
                return CategoryClass.PEER2PEERINTEREST
            if self.is_gross:
                return CategoryClass.GROSSINTEREST
            return CategoryClass.TAXEDINTEREST
        if category_class == CategoryClass.LOYALTYBONUS:
            if self.is_tax_free:
                return CategoryClass.TAXFREELOYALTYBONUS
            if self.is_gross or self.is_peer2peer:
                return CategoryClass.GROSSLOYALTYBONUS
            return CategoryClass.TAXEDLOYALTYBONUS
        return category_class


@dataclass
class Cash:
    name: str
    currency: Currency = Currency.GBP
    parent: Payee | None = None
    opening_balance: Money | None = None
    auto_expense: TransactionCategory | None = None
    auto_payee: Payee | None = None
    closed: bool = False
    id: UUID = field(default_factory=uuid4)

    @property
    def is_auto_expense(self) -> bool:
        return self.auto_expense is not None and self.auto_payee is not None


@dataclass
class Loan:
    name: str
    currency: Currency = Currency.GBP
    parent: Payee | None = None
    opening_balance: Money | None = None
    closed: bool = False
    id: UUID = field(default_factory=uuid4)


@dataclass
class Portfolio:
    name: str
    currency: Currency = Currency.GBP
    parent: Payee | None = None
    is_tax_free: bool = False
    closed: bool = False
    id: UUID = field(default_factory=uuid4)


@dataclass
class Security:
    name: str
    currency: Currency = Currency.GBP
    security_type: SecurityType = SecurityType.SHARES
    parent: Payee | None = None
    symbol: str | None = None
    closed: bool = False
    id: UUID = field(default_factory=uuid4)

    @property
    def is_capital_gains(self) -> bool:
        return self.security_type.is_capital_gains

    @property
    def is_life_bond(self) -> bool:
        return self.security_type == SecurityType.LIFE_BOND

    @property
    def auto_units(self) -> Decimal | None:
        return self.security_type.auto_units


@dataclass(frozen=True, eq=False)
class SecurityHolding:
    """A security held within a portfolio."""

    portfolio: Portfolio
    security: Security

    @property
    def id(self) -> UUID:
        return uuid5(self.portfolio.id, str(self.security.id))

    @property
    def name(self) -> str:
        return f"{self.portfolio.name}:{self.security.name}"

    @property
    def currency(self) -> Currency:
        return self.security.currency

    @property
    def parent(self) -> Payee | None:
        return self.security.parent

    @property
    def closed(self) -> bool:
        return self.security.closed

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecurityHolding):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def dividend_class(self) -> CategoryClass:
        """Detailed dividend class for income paid by this holding."""
        if self.portfolio.is_tax_free:
            return CategoryClass.TAXFREEDIVIDEND
        if self.security.currency != self.portfolio.currency:
            return CategoryClass.FOREIGNDIVIDEND
        if self.security.security_type == SecurityType.UNIT_TRUST:
            return CategoryClass.UNITTRUSTDIVIDEND
        return CategoryClass.SHAREDIVIDEND


Asset = Payee | Deposit | Cash | Loan | Portfolio | SecurityHolding

AccountAsset = Deposit | Cash | Loan | Portfolio
