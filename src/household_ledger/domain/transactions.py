from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from household_ledger.domain.assets import AccountAsset, Asset
from household_ledger.domain.categories import CategoryClass, TransactionCategory, TransactionTag
from household_ledger.domain.value_objects import AssetDirection, Money, Units


@dataclass
class Transaction:
    """A single ledger transaction between an account and a partner.

    amount is expressed in the account's currency and partner_amount, when
    given, in the partner's. Direction TO means the account pays the partner.
    """

    transaction_date: date
    account: Asset
    partner: Asset
    category: TransactionCategory
    amount: Money
    direction: AssetDirection = AssetDirection.TO
    partner_amount: Money | None = None
    tax_credit: Money | None = None
    employer_nat_ins: Money | None = None
    employee_nat_ins: Money | None = None
    deemed_benefit: Money | None = None
    withheld: Money | None = None
    returned_cash: Money | None = None
    returned_cash_account: AccountAsset | None = None
    account_delta_units: Units | None = None
    partner_delta_units: Units | None = None
    dilution: Decimal | None = None
    years: int | None = None
    tags: list[TransactionTag] = field(default_factory=list)
    description: str | None = None
    deleted: bool = False
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if self.dilution is not None and not isinstance(self.dilution, Decimal):
            self.dilution = Decimal(str(self.dilution))

    @property
    def category_class(self) -> CategoryClass:
        return self.category.category_class

    @property
    def debit(self) -> Asset:
        return self.account if self.direction == AssetDirection.TO else self.partner

    @property
    def credit(self) -> Asset:
        return self.partner if self.direction == AssetDirection.TO else self.account
